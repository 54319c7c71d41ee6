"""
Pytest configuration for DevTrack tests

No test touches the network or a database: requests is replaced with a
router of canned responses and the API tests override the repository.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from devtrack.core.config import settings

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeRequests:
    """Routes requests.request(method, url, ...) to canned responses by URL substring."""

    def __init__(self):
        self.routes = []
        self.calls = []

    def add(self, fragment, response):
        self.routes.append((fragment, response))

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for fragment, response in self.routes:
            if fragment in url:
                if isinstance(response, Exception):
                    raise response
                if callable(response):
                    return response(method, url, **kwargs)
                return response
        return FakeResponse(404, {"message": "Not Found"})


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(settings, "FETCH_RETRY_DELAY", 0.0)
    monkeypatch.setattr(settings, "FETCH_MAX_RETRIES", 1)
    monkeypatch.setattr(settings, "GITHUB_TOKEN", None)
    monkeypatch.setattr(settings, "GROQ_API_KEY", None)


@pytest.fixture
def fake_requests(monkeypatch):
    fake = FakeRequests()
    monkeypatch.setattr("requests.request", fake)
    return fake


def days_ago(n, base=TODAY):
    return base - timedelta(days=n)


def epoch(dt):
    return int(dt.timestamp())


@pytest.fixture
def cf_payloads():
    """user.info + user.status for a mid-rated handle."""
    recent = datetime.now(timezone.utc) - timedelta(days=3)
    old = datetime.now(timezone.utc) - timedelta(days=200)
    info = {"status": "OK", "result": [{
        "handle": "tourist_jr", "rating": 1432, "maxRating": 1510,
        "rank": "specialist", "maxRank": "specialist", "contribution": 0,
    }]}
    status = {"status": "OK", "result": [
        {"id": 1, "creationTimeSeconds": epoch(recent), "verdict": "OK",
         "problem": {"contestId": 4, "index": "A", "name": "Watermelon", "rating": 800, "tags": ["brute force", "math"]}},
        {"id": 2, "creationTimeSeconds": epoch(recent), "verdict": "OK",
         "problem": {"contestId": 4, "index": "A", "name": "Watermelon", "rating": 800, "tags": ["brute force", "math"]}},
        {"id": 3, "creationTimeSeconds": epoch(recent - timedelta(days=1)), "verdict": "WRONG_ANSWER",
         "problem": {"contestId": 455, "index": "A", "name": "Boredom", "rating": 1500, "tags": ["dp"]}},
        {"id": 4, "creationTimeSeconds": epoch(old), "verdict": "OK",
         "problem": {"contestId": 520, "index": "B", "name": "Two Buttons", "rating": 1400, "tags": ["dfs and similar", "graphs"]}},
        {"id": 5, "creationTimeSeconds": epoch(recent), "verdict": "OK",
         "problem": {"contestId": 1, "index": "A", "name": "Theatre Square", "tags": []}},
    ]}
    return info, status


# ---------- IN-MEMORY REPOSITORY ----------

import devtrack.db.base  # noqa: E402,F401  registers every mapper before User() is built
from devtrack.data.roadmap import overlay_progress  # noqa: E402
from devtrack.models.profile import CoachingCache, RankHistory, SkillProfileRecord  # noqa: E402
from devtrack.models.user import RoadmapProgress, StudySession, User  # noqa: E402
from devtrack.schemas.leaderboard import LeaderboardEntry  # noqa: E402
from devtrack.schemas.telemetry import ExternalStats  # noqa: E402
from devtrack.services.leaderboard import rank_entries, user_rank  # noqa: E402


class FakeRepository:
    """Same async surface as services.repository.Repository, backed by dicts."""

    def __init__(self):
        self.users = {}
        self.snapshots = {}
        self.sessions = {}
        self.progress = {}
        self.profiles = {}
        self.recommendations = {}
        self.ranks = {}
        self.coaching = {}
        self.commits = 0

    def add_user(self, username, batch=None, **handles):
        user = User(id=len(self.users) + 1, username=username, batch=batch, **handles)
        self.users[user.id] = user
        return user

    # users
    async def get_user(self, user_id):
        return self.users.get(user_id)

    async def get_user_by_username(self, username):
        return next((u for u in self.users.values() if u.username == username), None)

    async def create_user(self, username, batch=None, **handles):
        return self.add_user(username, batch, **handles)

    async def update_handles(self, user, **handles):
        for field, value in handles.items():
            setattr(user, field, (value or "").strip() or None)
        return user

    # sessions & roadmap
    async def add_session(self, user_id, entry):
        rows = self.sessions.setdefault(user_id, [])
        rows.append(entry)
        return StudySession(
            id=len(rows), user_id=user_id, date=entry.date, topic=entry.topic,
            category=entry.category, duration_minutes=entry.duration_minutes, difficulty=entry.difficulty,
        )

    async def load_sessions(self, user_id):
        return sorted(self.sessions.get(user_id, []), key=lambda s: s.date)

    async def set_roadmap_progress(self, user_id, topic_id, progress, completed):
        row = RoadmapProgress(user_id=user_id, topic_id=topic_id, progress=progress, completed=completed)
        self.progress.setdefault(user_id, {})[topic_id] = row
        return row

    async def load_roadmap(self, user_id):
        return overlay_progress(self.progress.get(user_id, {}).values())

    # snapshots
    async def load_snapshots(self, user_id):
        return ExternalStats(**self.snapshots.get(user_id, {}))

    async def save_snapshots(self, user_id, snapshots):
        for s in snapshots:
            self.snapshots.setdefault(user_id, {})[s.platform.lower()] = s

    # profile & recommendations
    async def load_profile(self, user_id):
        return self.profiles.get(user_id)

    async def save_profile(self, user_id, profile, topic_stats=None):
        self.profiles[user_id] = SkillProfileRecord(
            user_id=user_id,
            overall_score=profile.overall_score,
            dsa_score=profile.dsa_score,
            development_score=profile.development_score,
            consistency_score=profile.consistency_score,
            weak_topics=list(profile.weak_topics),
            strong_topics=list(profile.strong_topics),
            payload=profile.model_dump(mode="json"),
            topic_stats=topic_stats or [],
        )

    async def save_recommendations(self, user_id, recommendations):
        self.recommendations[user_id] = recommendations.flatten()

    async def load_recommendations(self, user_id):
        return list(self.recommendations.get(user_id, []))

    # leaderboard
    async def leaderboard_entries(self, batch=None):
        entries = []
        for user_id, record in self.profiles.items():
            user = self.users[user_id]
            if batch and user.batch != batch:
                continue
            entries.append(LeaderboardEntry(
                rank=0, user_id=user_id, username=user.username, batch=user.batch,
                overall_score=record.overall_score,
            ))
        return entries

    async def leaderboard(self, batch=None, limit=100):
        return rank_entries(await self.leaderboard_entries(batch), limit=limit)

    async def rank_of(self, user_id, batch=None):
        entries = await self.leaderboard_entries(batch)
        mine = next((e for e in entries if e.user_id == user_id), None)
        if mine is None:
            return None
        return user_rank(mine.overall_score, [e.overall_score for e in entries])

    async def record_rank(self, user_id, rank, overall_score, day=None):
        day = day or TODAY
        rows = [r for r in self.ranks.get(user_id, []) if r.day != day]
        rows.append(RankHistory(user_id=user_id, day=day, rank=rank, overall_score=overall_score))
        self.ranks[user_id] = sorted(rows, key=lambda r: r.day)

    async def rank_history(self, user_id, limit=30):
        return self.ranks.get(user_id, [])[-limit:]

    # coaching cache
    async def load_coaching(self, user_id):
        return self.coaching.get(user_id)

    async def save_coaching(self, user_id, analysis):
        self.coaching[user_id] = CoachingCache(
            user_id=user_id,
            analysis=analysis.model_dump(mode="json"),
            generated_at=analysis.generated_at,
        )

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        pass


@pytest.fixture
def repo():
    return FakeRepository()
