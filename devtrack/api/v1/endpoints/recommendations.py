from fastapi import APIRouter, Depends

from devtrack.analysis.weakness_analysis import TopicStat
from devtrack.core.dependencies import get_repository, get_user_or_404
from devtrack.models.user import User
from devtrack.preprocess.problem_bank import load_problem_bank
from devtrack.recommender.dsa_tracks import build_dsa_tracks
from devtrack.schemas.recommendation import DSASuggestionResult, RecommendationsResponse
from devtrack.services.repository import Repository

router = APIRouter()


@router.get("/{user_id}", response_model=RecommendationsResponse)
async def get_recommendations(user: User = Depends(get_user_or_404), repo: Repository = Depends(get_repository)):
    record = await repo.load_profile(user.id)
    return RecommendationsResponse(
        user_id=user.id,
        recommendations=await repo.load_recommendations(user.id),
        generated_at=record.updated_at if record else None,
    )


@router.get("/{user_id}/dsa-tracks", response_model=DSASuggestionResult)
async def get_dsa_tracks(user: User = Depends(get_user_or_404), repo: Repository = Depends(get_repository)):
    stats = await repo.load_snapshots(user.id)
    roadmap = await repo.load_roadmap(user.id)
    record = await repo.load_profile(user.id)
    topic_stats = {row["topic"]: TopicStat(**row) for row in (record.topic_stats if record else None) or []}
    return build_dsa_tracks(stats.cf, user.codeforces_handle, topic_stats, roadmap, load_problem_bank())
