from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict
from datetime import date, datetime


def _strip_or_none(v):
    if v is None:
        return None
    v = str(v).strip()
    return v or None


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    batch: Optional[str] = None
    codeforces_handle: Optional[str] = None
    leetcode_username: Optional[str] = None
    github_username: Optional[str] = None

    @field_validator("codeforces_handle", "leetcode_username", "github_username", "batch", mode="before")
    @classmethod
    def strip_handles(cls, v):
        return _strip_or_none(v)


class HandlesUpdate(BaseModel):
    codeforces_handle: Optional[str] = None
    leetcode_username: Optional[str] = None
    github_username: Optional[str] = None

    @field_validator("codeforces_handle", "leetcode_username", "github_username", mode="before")
    @classmethod
    def strip_handles(cls, v):
        return _strip_or_none(v)


class UserResponse(BaseModel):
    id: int
    username: str
    batch: Optional[str]
    codeforces_handle: Optional[str]
    leetcode_username: Optional[str]
    github_username: Optional[str]
    created_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class StudySessionCreate(BaseModel):
    date: date
    topic: str = Field(min_length=1)
    category: str = "dsa"
    duration_minutes: int = Field(ge=0)
    difficulty: Optional[str] = None


class StudySessionResponse(StudySessionCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class RoadmapProgressUpdate(BaseModel):
    progress: float = Field(ge=0, le=100)
    completed: bool = False


class RoadmapTopicResponse(BaseModel):
    topic_id: str
    title: str
    category: str
    progress: float
    completed: bool


class SyncStatusResponse(BaseModel):
    user_id: int
    syncing: bool
    last_synced: Optional[datetime] = None
    stale_platforms: List[str] = []


class SyncTriggerResponse(BaseModel):
    user_id: int
    status: str
    fetched: List[str] = []
    errors: Dict[str, str] = {}
