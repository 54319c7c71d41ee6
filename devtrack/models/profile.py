from sqlalchemy import Column, Integer, String, ForeignKey, JSON, DateTime, Date, Float, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from devtrack.db.base_class import Base


class ExternalStat(Base):
    """One snapshot per (user, platform); replaced wholesale on every successful fetch."""
    __tablename__ = "external_stats"
    __table_args__ = (UniqueConstraint("user_id", "platform", name="uq_external_stats_user_platform"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    platform = Column(String(2), nullable=False)
    handle = Column(String, nullable=False)
    payload = Column(JSON, nullable=False)
    fetched_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="external_stats")


class SkillProfileRecord(Base):
    __tablename__ = "skill_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    overall_score = Column(Integer, default=0, index=True)
    dsa_score = Column(Integer, default=0)
    development_score = Column(Integer, default=0)
    consistency_score = Column(Integer, default=0)
    weak_topics = Column(JSON, nullable=True)
    strong_topics = Column(JSON, nullable=True)
    study_streak_days = Column(Integer, default=0)
    learning_velocity = Column(Float, default=0.0)

    payload = Column(JSON, nullable=False)
    topic_stats = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="skill_profile")


class RecommendationRecord(Base):
    __tablename__ = "recommendations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    type = Column(String(20), nullable=False)
    position = Column(Integer, default=0)
    content = Column(JSON, nullable=False)

    created_at = Column(DateTime, default=func.now())


class CoachingCache(Base):
    __tablename__ = "coaching_cache"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    analysis = Column(JSON, nullable=False)
    generated_at = Column(DateTime(timezone=True), nullable=False)


class RankHistory(Base):
    __tablename__ = "rank_history"
    __table_args__ = (UniqueConstraint("user_id", "day", name="uq_rank_history_user_day"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    day = Column(Date, nullable=False)
    rank = Column(Integer, nullable=False)
    overall_score = Column(Integer, nullable=False)
