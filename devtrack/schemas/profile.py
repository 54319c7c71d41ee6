from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TopicMastery(BaseModel):
    topic: str
    score: int = Field(ge=0, le=100)


class SkillProfile(BaseModel):
    """Composite scoring record. Always recomputed from scratch, never patched."""

    dsa_score: int = Field(0, ge=0, le=100)
    development_score: int = Field(0, ge=0, le=100)
    consistency_score: int = Field(0, ge=0, le=100)
    overall_score: int = Field(0, ge=0, le=100)
    weak_topics: List[str] = []
    strong_topics: List[str] = []
    study_streak_days: int = Field(0, ge=0)
    learning_velocity: float = Field(0.0, ge=0)

    # display fields
    cf_rating: int = 0
    cf_max_rating: int = 0
    cf_rank: str = "—"
    lc_total_solved: int = 0
    lc_easy_solved: int = 0
    lc_medium_solved: int = 0
    lc_hard_solved: int = 0
    total_problems_solved: int = 0
    gh_public_repos: int = 0
    gh_last_month_commits: int = 0
    gh_total_stars: int = 0
    gh_top_languages: List[str] = []
    devtrack_sessions: int = 0
    roadmap_completed: int = 0
    roadmap_total: int = 0
    topic_mastery: List[TopicMastery] = []
    computed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TopicStatResponse(BaseModel):
    topic: str
    attempts: int
    solved: int
    avg_rating: float
    success_rate: float
    classification: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ActivityDay(BaseModel):
    date: date
    devtrack: bool = False
    cf: bool = False
    gh: bool = False
    minutes_studied: int = 0
    topics: List[str] = []


class ProfileResponse(BaseModel):
    user_id: int
    username: str
    profile: Optional[SkillProfile] = None
    last_synced: Optional[datetime] = None
    syncing: bool = False
    stale: bool = False
