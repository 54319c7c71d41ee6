# Import every model so Base.metadata knows all tables before create_all.
from devtrack.db.base_class import Base  # noqa: F401
from devtrack.models.user import User, StudySession, RoadmapProgress  # noqa: F401
from devtrack.models.profile import (  # noqa: F401
    ExternalStat,
    SkillProfileRecord,
    RecommendationRecord,
    CoachingCache,
    RankHistory,
)
