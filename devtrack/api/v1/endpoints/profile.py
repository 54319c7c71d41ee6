from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends

from devtrack.analysis.weakness_analysis import TopicStat
from devtrack.core.dependencies import get_repository, get_user_or_404
from devtrack.models.user import User
from devtrack.preprocess.normalize import sorted_activity
from devtrack.schemas.profile import ActivityDay, ProfileResponse, SkillProfile, TopicStatResponse
from devtrack.services.pipeline import build_activity
from devtrack.services.repository import Repository
from devtrack.services.sync_registry import sync_registry
from devtrack.services.sync_service import platforms_to_refresh, run_background_sync

router = APIRouter()


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    background_tasks: BackgroundTasks,
    user: User = Depends(get_user_or_404),
    repo: Repository = Depends(get_repository),
):
    record = await repo.load_profile(user.id)
    stats = await repo.load_snapshots(user.id)

    stale = bool(platforms_to_refresh(user, stats, force=False))
    syncing = sync_registry.is_syncing(user.id)
    if (stale or record is None) and not syncing:
        background_tasks.add_task(run_background_sync, user.id, False)

    return ProfileResponse(
        user_id=user.id,
        username=user.username,
        profile=SkillProfile.model_validate(record.payload) if record else None,
        last_synced=stats.last_synced,
        syncing=syncing,
        stale=stale,
    )


@router.get("/{user_id}/activity", response_model=List[ActivityDay])
async def get_activity(user: User = Depends(get_user_or_404), repo: Repository = Depends(get_repository)):
    stats = await repo.load_snapshots(user.id)
    sessions = await repo.load_sessions(user.id)
    return [
        ActivityDay(
            date=r.date, devtrack=r.devtrack, cf=r.cf, gh=r.gh,
            minutes_studied=r.minutes_studied, topics=sorted(r.topics),
        )
        for r in sorted_activity(build_activity(stats, sessions))
    ]


@router.get("/{user_id}/topics", response_model=List[TopicStatResponse])
async def get_topics(user: User = Depends(get_user_or_404), repo: Repository = Depends(get_repository)):
    record = await repo.load_profile(user.id)
    if record is None:
        return []

    weak = set(record.weak_topics or [])
    strong = set(record.strong_topics or [])
    out = []
    for row in record.topic_stats or []:
        stat = TopicStat(**row)
        label = "strong" if stat.topic in strong else "weak" if stat.topic in weak else None
        out.append(TopicStatResponse(
            topic=stat.topic,
            attempts=stat.attempts,
            solved=stat.solved,
            avg_rating=round(stat.avg_rating, 1),
            success_rate=round(stat.success_rate, 1),
            classification=label,
        ))
    return sorted(out, key=lambda t: (-t.attempts, t.topic))
