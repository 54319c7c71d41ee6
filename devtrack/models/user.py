from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from devtrack.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    batch = Column(String, nullable=True, index=True)

    codeforces_handle = Column(String, nullable=True)
    leetcode_username = Column(String, nullable=True)
    github_username = Column(String, nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    external_stats = relationship("ExternalStat", back_populates="user", cascade="all, delete-orphan")
    sessions = relationship("StudySession", back_populates="user", cascade="all, delete-orphan")
    roadmap_progress = relationship("RoadmapProgress", back_populates="user", cascade="all, delete-orphan")
    skill_profile = relationship("SkillProfileRecord", back_populates="user", uselist=False, cascade="all, delete-orphan")

    def handle_for(self, platform: str):
        return {
            "CF": self.codeforces_handle,
            "LC": self.leetcode_username,
            "GH": self.github_username,
        }.get(platform)


class StudySession(Base):
    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    date = Column(Date, nullable=False, index=True)
    topic = Column(String, nullable=False)
    category = Column(String(50), default="dsa")
    duration_minutes = Column(Integer, default=0)
    difficulty = Column(String(20), nullable=True)

    created_at = Column(DateTime, default=func.now())

    user = relationship("User", back_populates="sessions")


class RoadmapProgress(Base):
    __tablename__ = "roadmap_progress"
    __table_args__ = (UniqueConstraint("user_id", "topic_id", name="uq_roadmap_user_topic"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    topic_id = Column(String(100), nullable=False)
    progress = Column(Float, default=0.0)
    completed = Column(Boolean, default=False)

    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="roadmap_progress")
