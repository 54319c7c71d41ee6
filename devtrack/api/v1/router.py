from fastapi import APIRouter

from devtrack.api.v1.endpoints import coaching, leaderboard, profile, recommendations, sync, users

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(sync.router, prefix="/sync", tags=["sync"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
api_router.include_router(recommendations.router, prefix="/recommendations", tags=["recommendations"])
api_router.include_router(leaderboard.router, prefix="/leaderboard", tags=["leaderboard"])
api_router.include_router(coaching.router, prefix="/coaching", tags=["coaching"])
