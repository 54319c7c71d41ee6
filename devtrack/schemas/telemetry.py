from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from devtrack.core.errors import FetchErrorKind


# ---------------------------------------------------------------------------
# Raw platform payloads
# ---------------------------------------------------------------------------

class _RawModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CFUser(_RawModel):
    handle: str
    rating: int = 0
    max_rating: int = Field(0, alias="maxRating")
    rank: str = "unrated"
    max_rank: str = Field("unrated", alias="maxRank")


class CFProblem(_RawModel):
    contest_id: Optional[int] = Field(None, alias="contestId")
    index: Optional[str] = None
    name: str = "Unknown"
    rating: Optional[int] = None
    tags: List[str] = []


class CFSubmission(_RawModel):
    id: Optional[int] = None
    creation_time_seconds: int = Field(0, alias="creationTimeSeconds")
    verdict: Optional[str] = None
    problem: CFProblem = CFProblem()

    @property
    def problem_key(self) -> Optional[str]:
        if self.problem.contest_id is None or not self.problem.index:
            return None
        return f"{self.problem.contest_id}{self.problem.index}"


class LCSubmissionCount(_RawModel):
    difficulty: str
    count: int = 0


class LCSubmitStats(_RawModel):
    ac_submission_num: List[LCSubmissionCount] = Field([], alias="acSubmissionNum")


class LCProfile(_RawModel):
    ranking: Optional[int] = None


class LCCalendar(_RawModel):
    submission_calendar: Optional[str] = Field(None, alias="submissionCalendar")


class LCMatchedUser(_RawModel):
    username: Optional[str] = None
    profile: LCProfile = LCProfile()
    submit_stats: LCSubmitStats = Field(LCSubmitStats(), alias="submitStats")
    user_calendar: Optional[LCCalendar] = Field(None, alias="userCalendar")

    def solved(self, difficulty: str) -> int:
        for bucket in self.submit_stats.ac_submission_num:
            if bucket.difficulty.lower() == difficulty.lower():
                return bucket.count
        return 0


class GHUser(_RawModel):
    login: str
    public_repos: int = 0
    followers: int = 0
    following: int = 0


class GHRepo(_RawModel):
    name: str = ""
    stargazers_count: int = 0
    language: Optional[str] = None


class GHEvent(_RawModel):
    type: str
    created_at: datetime
    payload: Dict[str, Any] = {}

    @property
    def commit_count(self) -> int:
        commits = self.payload.get("commits")
        if isinstance(commits, list) and commits:
            return len(commits)
        size = self.payload.get("size")
        return size if isinstance(size, int) else 0


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AttemptRecord(BaseModel):
    problem_id: str
    name: str = "Unknown"
    topic: str = "General"
    rating: Optional[int] = None
    verdict: Optional[str] = None
    submitted_at: Optional[datetime] = None


class ExternalStatSnapshot(BaseModel):
    """One platform's point-in-time summary. Replaced wholesale on each sync."""

    model_config = ConfigDict(frozen=True)

    platform: str
    handle: str
    rating: Optional[int] = None
    max_rating: Optional[int] = None
    rank: Optional[str] = None
    solved_count: int = 0
    recent_activity_dates: List[date] = []
    fetched_at: datetime = Field(default_factory=utcnow)

    @field_validator("recent_activity_dates", mode="after")
    @classmethod
    def dedupe_dates(cls, v):
        return sorted(set(v))

    def is_stale(self, now: Optional[datetime] = None, max_age_hours: int = 24) -> bool:
        now = now or utcnow()
        fetched = self.fetched_at
        if fetched.tzinfo is None:
            fetched = fetched.replace(tzinfo=timezone.utc)
        return now - fetched > timedelta(hours=max_age_hours)


class CodeforcesSnapshot(ExternalStatSnapshot):
    platform: Literal["CF"] = "CF"
    max_rank: str = "unrated"
    total_submissions: int = 0
    attempts: List[AttemptRecord] = []


class LeetCodeSnapshot(ExternalStatSnapshot):
    platform: Literal["LC"] = "LC"
    easy_solved: int = 0
    medium_solved: int = 0
    hard_solved: int = 0
    ranking: int = 0


class GitHubSnapshot(ExternalStatSnapshot):
    platform: Literal["GH"] = "GH"
    public_repos: int = 0
    followers: int = 0
    following: int = 0
    total_stars: int = 0
    total_commits_estimate: int = 0
    last_month_commits: int = 0
    top_languages: List[str] = []


AnySnapshot = Annotated[
    Union[CodeforcesSnapshot, LeetCodeSnapshot, GitHubSnapshot],
    Field(discriminator="platform"),
]


class ExternalStats(BaseModel):
    cf: Optional[CodeforcesSnapshot] = None
    lc: Optional[LeetCodeSnapshot] = None
    gh: Optional[GitHubSnapshot] = None

    @property
    def last_synced(self) -> Optional[datetime]:
        stamps = [s.fetched_at for s in (self.cf, self.lc, self.gh) if s is not None]
        return max(stamps) if stamps else None

    def get(self, platform: str) -> Optional[ExternalStatSnapshot]:
        return getattr(self, platform.lower())


@dataclass
class FetchResult:
    platform: str
    snapshot: Optional[ExternalStatSnapshot] = None
    error: Optional[FetchErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None
