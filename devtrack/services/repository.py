import logging
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from devtrack.data.roadmap import RoadmapTopicState, overlay_progress
from devtrack.models.profile import (
    CoachingCache,
    ExternalStat,
    RankHistory,
    RecommendationRecord,
    SkillProfileRecord,
)
from devtrack.models.user import RoadmapProgress, StudySession, User
from devtrack.preprocess.normalize import StudySessionEntry
from devtrack.schemas.coaching import CoachingAnalysis
from devtrack.schemas.leaderboard import LeaderboardEntry
from devtrack.schemas.profile import SkillProfile
from devtrack.schemas.recommendation import Recommendation, RecommendationSet
from devtrack.schemas.telemetry import AnySnapshot, ExternalStats, ExternalStatSnapshot
from devtrack.services.leaderboard import rank_entries, user_rank

logger = logging.getLogger(__name__)

_snapshot_adapter = TypeAdapter(AnySnapshot)


def _aware(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class Repository:
    """Async data access over one SQLAlchemy session. Writes are last-writer-wins."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ---------- USERS ----------

    async def get_user(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def create_user(self, username: str, batch: Optional[str] = None, **handles) -> User:
        user = User(username=username, batch=batch, **handles)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def update_handles(self, user: User, **handles) -> User:
        for field, value in handles.items():
            setattr(user, field, (value or "").strip() or None)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    # ---------- SESSIONS & ROADMAP ----------

    async def add_session(self, user_id: int, entry: StudySessionEntry) -> StudySession:
        row = StudySession(
            user_id=user_id,
            date=entry.date,
            topic=entry.topic,
            category=entry.category,
            duration_minutes=entry.duration_minutes,
            difficulty=entry.difficulty,
        )
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return row

    async def load_sessions(self, user_id: int) -> List[StudySessionEntry]:
        result = await self.db.execute(
            select(StudySession).where(StudySession.user_id == user_id).order_by(StudySession.date)
        )
        return [
            StudySessionEntry(
                date=s.date,
                topic=s.topic,
                category=s.category or "dsa",
                duration_minutes=s.duration_minutes or 0,
                difficulty=s.difficulty,
            )
            for s in result.scalars().all()
        ]

    async def set_roadmap_progress(self, user_id: int, topic_id: str, progress: float, completed: bool) -> RoadmapProgress:
        result = await self.db.execute(
            select(RoadmapProgress).where(
                RoadmapProgress.user_id == user_id,
                RoadmapProgress.topic_id == topic_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = RoadmapProgress(user_id=user_id, topic_id=topic_id)
            self.db.add(row)
        row.progress = progress
        row.completed = completed
        await self.db.commit()
        await self.db.refresh(row)
        return row

    async def load_roadmap(self, user_id: int) -> List[RoadmapTopicState]:
        result = await self.db.execute(select(RoadmapProgress).where(RoadmapProgress.user_id == user_id))
        return overlay_progress(result.scalars().all())

    # ---------- SNAPSHOTS ----------

    async def load_snapshots(self, user_id: int) -> ExternalStats:
        result = await self.db.execute(select(ExternalStat).where(ExternalStat.user_id == user_id))
        found: Dict[str, ExternalStatSnapshot] = {}
        for row in result.scalars().all():
            try:
                snapshot = _snapshot_adapter.validate_python(row.payload)
            except ValidationError:
                # unreadable rows are treated as missing so the next sync refetches them
                logger.warning("Discarding unreadable %s snapshot for user %s", row.platform, user_id)
                continue
            found[snapshot.platform.lower()] = snapshot
        return ExternalStats(**found)

    async def save_snapshots(self, user_id: int, snapshots: Iterable[ExternalStatSnapshot]) -> None:
        for snapshot in snapshots:
            result = await self.db.execute(
                select(ExternalStat).where(
                    ExternalStat.user_id == user_id,
                    ExternalStat.platform == snapshot.platform,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = ExternalStat(user_id=user_id, platform=snapshot.platform)
                self.db.add(row)
            row.handle = snapshot.handle
            row.payload = snapshot.model_dump(mode="json")
            row.fetched_at = _aware(snapshot.fetched_at)

    # ---------- PROFILE & RECOMMENDATIONS ----------

    async def load_profile(self, user_id: int) -> Optional[SkillProfileRecord]:
        result = await self.db.execute(select(SkillProfileRecord).where(SkillProfileRecord.user_id == user_id))
        return result.scalar_one_or_none()

    async def save_profile(self, user_id: int, profile: SkillProfile, topic_stats: Optional[list] = None) -> None:
        row = await self.load_profile(user_id)
        if row is None:
            row = SkillProfileRecord(user_id=user_id)
            self.db.add(row)
        row.overall_score = profile.overall_score
        row.dsa_score = profile.dsa_score
        row.development_score = profile.development_score
        row.consistency_score = profile.consistency_score
        row.weak_topics = list(profile.weak_topics)
        row.strong_topics = list(profile.strong_topics)
        row.study_streak_days = profile.study_streak_days
        row.learning_velocity = profile.learning_velocity
        row.payload = profile.model_dump(mode="json")
        row.topic_stats = topic_stats or []

    async def save_recommendations(self, user_id: int, recommendations: RecommendationSet) -> None:
        await self.db.execute(delete(RecommendationRecord).where(RecommendationRecord.user_id == user_id))
        for position, rec in enumerate(recommendations.flatten()):
            self.db.add(RecommendationRecord(
                user_id=user_id,
                type=rec.type,
                position=position,
                content=rec.content.model_dump(mode="json"),
            ))

    async def load_recommendations(self, user_id: int) -> List[Recommendation]:
        result = await self.db.execute(
            select(RecommendationRecord)
            .where(RecommendationRecord.user_id == user_id)
            .order_by(RecommendationRecord.position)
        )
        return [Recommendation(type=r.type, content=r.content) for r in result.scalars().all()]

    # ---------- LEADERBOARD ----------

    async def leaderboard_entries(self, batch: Optional[str] = None) -> List[LeaderboardEntry]:
        query = select(SkillProfileRecord, User).join(User, User.id == SkillProfileRecord.user_id)
        if batch:
            query = query.where(User.batch == batch)
        result = await self.db.execute(query)

        entries = []
        for record, user in result.all():
            payload = record.payload or {}
            entries.append(LeaderboardEntry(
                rank=0,
                user_id=user.id,
                username=user.username,
                batch=user.batch,
                overall_score=record.overall_score or 0,
                dsa_score=record.dsa_score or 0,
                development_score=record.development_score or 0,
                consistency_score=record.consistency_score or 0,
                problems_solved=payload.get("total_problems_solved", 0),
                codeforces_rating=payload.get("cf_rating", 0),
                leetcode_solved=payload.get("lc_total_solved", 0),
            ))
        return entries

    async def leaderboard(self, batch: Optional[str] = None, limit: int = 100) -> List[LeaderboardEntry]:
        return rank_entries(await self.leaderboard_entries(batch), limit=limit)

    async def rank_of(self, user_id: int, batch: Optional[str] = None) -> Optional[int]:
        entries = await self.leaderboard_entries(batch)
        mine = next((e for e in entries if e.user_id == user_id), None)
        if mine is None:
            return None
        return user_rank(mine.overall_score, [e.overall_score for e in entries])

    async def record_rank(self, user_id: int, rank: int, overall_score: int, day: Optional[date] = None) -> None:
        day = day or datetime.now(timezone.utc).date()
        result = await self.db.execute(
            select(RankHistory).where(RankHistory.user_id == user_id, RankHistory.day == day)
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = RankHistory(user_id=user_id, day=day)
            self.db.add(row)
        row.rank = rank
        row.overall_score = overall_score

    async def rank_history(self, user_id: int, limit: int = 30) -> List[RankHistory]:
        result = await self.db.execute(
            select(RankHistory)
            .where(RankHistory.user_id == user_id)
            .order_by(RankHistory.day.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    # ---------- COACHING CACHE ----------

    async def load_coaching(self, user_id: int) -> Optional[CoachingCache]:
        result = await self.db.execute(select(CoachingCache).where(CoachingCache.user_id == user_id))
        return result.scalar_one_or_none()

    async def save_coaching(self, user_id: int, analysis: CoachingAnalysis) -> None:
        row = await self.load_coaching(user_id)
        if row is None:
            row = CoachingCache(user_id=user_id)
            self.db.add(row)
        row.analysis = analysis.model_dump(mode="json")
        row.generated_at = _aware(analysis.generated_at) or datetime.now(timezone.utc)
        await self.db.commit()

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
