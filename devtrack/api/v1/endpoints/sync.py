from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends

from devtrack.core.dependencies import get_repository, get_user_or_404
from devtrack.models.user import User
from devtrack.schemas.user import SyncStatusResponse, SyncTriggerResponse
from devtrack.services.repository import Repository
from devtrack.services.sync_registry import sync_registry
from devtrack.services.sync_service import SyncService, platforms_to_refresh, run_background_sync

router = APIRouter()


@router.post("/{user_id}", response_model=SyncTriggerResponse)
async def trigger_sync(
    background_tasks: BackgroundTasks,
    force: bool = False,
    background: bool = False,
    user: User = Depends(get_user_or_404),
    repo: Repository = Depends(get_repository),
):
    if background:
        if sync_registry.is_syncing(user.id) and not force:
            return SyncTriggerResponse(user_id=user.id, status="skipped")
        background_tasks.add_task(run_background_sync, user.id, force)
        return SyncTriggerResponse(user_id=user.id, status="scheduled")

    report = await SyncService(repo).sync_user(user.id, force=force)

    return SyncTriggerResponse(
        user_id=user.id,
        status=report.status,
        fetched=report.fetched,
        errors={p: kind.value for p, kind in report.errors.items()},
    )


@router.get("/{user_id}/status", response_model=SyncStatusResponse)
async def sync_status(user: User = Depends(get_user_or_404), repo: Repository = Depends(get_repository)):
    stats = await repo.load_snapshots(user.id)
    return SyncStatusResponse(
        user_id=user.id,
        syncing=sync_registry.is_syncing(user.id),
        last_synced=stats.last_synced,
        stale_platforms=platforms_to_refresh(user, stats, force=False, now=datetime.now(timezone.utc)),
    )
