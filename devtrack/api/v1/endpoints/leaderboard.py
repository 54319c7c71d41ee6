from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from devtrack.core.dependencies import get_repository, get_user_or_404
from devtrack.models.user import User
from devtrack.schemas.leaderboard import LeaderboardEntry, RankHistoryEntry, RankHistoryResponse, UserRankResponse
from devtrack.services.repository import Repository

router = APIRouter()


@router.get("", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    batch: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    repo: Repository = Depends(get_repository),
):
    return await repo.leaderboard(batch=batch, limit=limit)


@router.get("/{user_id}/rank", response_model=UserRankResponse)
async def get_user_rank(
    batch: Optional[str] = None,
    user: User = Depends(get_user_or_404),
    repo: Repository = Depends(get_repository),
):
    record = await repo.load_profile(user.id)
    rank = await repo.rank_of(user.id, batch=batch)
    if record is None or rank is None:
        raise HTTPException(status_code=404, detail="User has no skill profile yet")
    return UserRankResponse(user_id=user.id, rank=rank, overall_score=record.overall_score, batch=batch)


@router.get("/{user_id}/history", response_model=RankHistoryResponse)
async def get_rank_history(user: User = Depends(get_user_or_404), repo: Repository = Depends(get_repository)):
    rows = await repo.rank_history(user.id)
    return RankHistoryResponse(
        user_id=user.id,
        history=[RankHistoryEntry(date=r.day, rank=r.rank, overall_score=r.overall_score) for r in rows],
    )
