"""
Sync Service - one end-to-end pass for one user.

  1. Load user, stored snapshots, sessions and roadmap progress
  2. Fetch the platforms that are missing or stale (all of them when forced)
  3. Replace fetched snapshots wholesale, keep the old ones on failure
  4. Run the aggregation pipeline
  5. Persist profile, recommendations and today's rank

Passes for the same user never overlap; see SyncRegistry.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel

from devtrack.core.config import settings
from devtrack.core.errors import FetchErrorKind
from devtrack.db.session import session_scope
from devtrack.services.pipeline import PipelineInputs, run_pipeline
from devtrack.services.repository import Repository
from devtrack.services.sync_registry import SyncRegistry, sync_registry
from devtrack.services.telemetry import PLATFORMS, Fetcher, fetch_platforms
from devtrack.schemas.profile import SkillProfile
from devtrack.schemas.telemetry import ExternalStats

logger = logging.getLogger(__name__)


class SyncReport(BaseModel):
    user_id: int
    status: Literal["completed", "skipped"]
    fetched: List[str] = []
    errors: Dict[str, FetchErrorKind] = {}
    profile: Optional[SkillProfile] = None


class UserNotFound(LookupError):
    pass


def platforms_to_refresh(user, stats: ExternalStats, force: bool, now: Optional[datetime] = None) -> List[str]:
    """Configured platforms whose snapshot is missing or stale (every configured one when forced)."""
    now = now or datetime.now(timezone.utc)
    due = []
    for platform in PLATFORMS:
        if not (user.handle_for(platform) or "").strip():
            continue
        snapshot = stats.get(platform)
        if force or snapshot is None or snapshot.is_stale(now, settings.SNAPSHOT_STALE_HOURS):
            due.append(platform)
    return due


class SyncService:
    def __init__(
        self,
        repository: Repository,
        registry: SyncRegistry = sync_registry,
        fetchers: Optional[Mapping[str, Fetcher]] = None,
        bank=None,
    ):
        self.repository = repository
        self.registry = registry
        self.fetchers = fetchers
        self.bank = bank

    def is_syncing(self, user_id: int) -> bool:
        return self.registry.is_syncing(user_id)

    async def sync_user(self, user_id: int, force: bool = False) -> SyncReport:
        report = await self.registry.run(user_id, lambda: self._sync(user_id, force), force=force)
        if report is None:
            return SyncReport(user_id=user_id, status="skipped")
        return report

    async def _sync(self, user_id: int, force: bool) -> SyncReport:
        repo = self.repository
        user = await repo.get_user(user_id)
        if user is None:
            raise UserNotFound(user_id)

        logger.info("Sync pass started for user %s (force=%s)", user.username, force)

        # ---------- FETCH ----------
        stats = await repo.load_snapshots(user_id)
        due = platforms_to_refresh(user, stats, force)
        handles = {p: user.handle_for(p) for p in due}
        results = await fetch_platforms(handles, due, self.fetchers) if due else {}

        fresh = [r.snapshot for r in results.values() if r.snapshot is not None]
        errors = {p: r.error for p, r in results.items() if r.error is not None}
        if fresh:
            stats = stats.model_copy(update={s.platform.lower(): s for s in fresh})
            await repo.save_snapshots(user_id, fresh)

        # ---------- AGGREGATE ----------
        sessions = await repo.load_sessions(user_id)
        roadmap = await repo.load_roadmap(user_id)
        result = run_pipeline(PipelineInputs(stats=stats, sessions=sessions, roadmap=roadmap, bank=self.bank))

        # ---------- PERSIST ----------
        topic_rows = [
            {"topic": t.topic, "attempts": t.attempts, "solved": t.solved, "avg_rating": t.avg_rating}
            for t in result.topic_stats.values()
        ]
        await repo.save_profile(user_id, result.profile, topic_rows)
        await repo.save_recommendations(user_id, result.recommendations)
        await repo.commit()

        rank = await repo.rank_of(user_id)
        if rank is not None:
            await repo.record_rank(user_id, rank, result.profile.overall_score)
            await repo.commit()

        logger.info(
            "Sync pass done for %s: overall=%d fetched=%s errors=%s",
            user.username, result.profile.overall_score,
            [s.platform for s in fresh], {p: e.value for p, e in errors.items()},
        )
        return SyncReport(
            user_id=user_id,
            status="completed",
            fetched=[s.platform for s in fresh],
            errors=errors,
            profile=result.profile,
        )


async def run_background_sync(user_id: int, force: bool = False) -> None:
    """Entry point for BackgroundTasks: owns its own DB session."""
    try:
        async with session_scope() as db:
            await SyncService(Repository(db)).sync_user(user_id, force=force)
    except UserNotFound:
        logger.warning("Background sync for unknown user %s", user_id)
    except Exception:
        logger.exception("Background sync failed for user %s", user_id)
