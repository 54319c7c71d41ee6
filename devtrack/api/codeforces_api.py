# api/codeforces_api.py

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List

from devtrack.api.client import get_json, run_fetch
from devtrack.core.config import settings
from devtrack.core.errors import MalformedResponseError, NotFoundError
from devtrack.preprocess.normalize import normalize_topic
from devtrack.schemas.telemetry import (
    AttemptRecord,
    CFSubmission,
    CFUser,
    CodeforcesSnapshot,
    FetchResult,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://codeforces.com/api"
SOLVED_VERDICTS = {"OK"}


def _call(method: str, params: dict):
    """
    Call a Codeforces API method and unwrap its {"status", "result"} envelope.

    Codeforces answers unknown handles with HTTP 400 and a FAILED status.
    """
    data = get_json(f"{BASE_URL}/{method}", params=params, ok_statuses=(400,))
    if not isinstance(data, dict):
        raise MalformedResponseError(f"unexpected {method} payload")

    if data.get("status") != "OK":
        comment = str(data.get("comment") or "Unknown error")
        if "not found" in comment.lower():
            raise NotFoundError(comment)
        raise MalformedResponseError(comment)

    return data.get("result")


def fetch_cf_user(handle: str) -> CFUser:
    result = _call("user.info", {"handles": handle})
    if not result:
        raise NotFoundError(handle)
    return CFUser.model_validate(result[0])


def fetch_cf_submissions(handle: str) -> List[CFSubmission]:
    result = _call("user.status", {"handle": handle, "from": 1, "count": settings.CF_SUBMISSION_COUNT})
    return [CFSubmission.model_validate(s) for s in result or []]


def build_cf_snapshot(user: CFUser, submissions: List[CFSubmission], now: datetime = None) -> CodeforcesSnapshot:
    now = now or datetime.now(timezone.utc)
    recent_cutoff = now - timedelta(days=settings.CF_RECENT_DAYS)

    solved = set()
    recent_dates = set()
    attempts = []

    for sub in submissions:
        submitted_at = datetime.fromtimestamp(sub.creation_time_seconds, tz=timezone.utc)
        key = sub.problem_key

        if sub.verdict in SOLVED_VERDICTS:
            if key:
                solved.add(key)
            if submitted_at >= recent_cutoff:
                recent_dates.add(submitted_at.date())

        tags = sub.problem.tags
        attempts.append(AttemptRecord(
            problem_id=key or str(sub.id or ""),
            name=sub.problem.name,
            topic=normalize_topic(tags[0]) if tags else "General",
            rating=sub.problem.rating,
            verdict=sub.verdict,
            submitted_at=submitted_at,
        ))

    return CodeforcesSnapshot(
        handle=user.handle,
        rating=user.rating,
        max_rating=user.max_rating,
        rank=user.rank,
        max_rank=user.max_rank,
        solved_count=len(solved),
        total_submissions=len(submissions),
        recent_activity_dates=recent_dates,
        attempts=attempts,
        fetched_at=now,
    )


async def collect_codeforces(handle: str) -> CodeforcesSnapshot:
    user, submissions = await asyncio.gather(
        asyncio.to_thread(fetch_cf_user, handle),
        asyncio.to_thread(fetch_cf_submissions, handle),
    )
    logger.debug("Fetched %d Codeforces submissions for %s", len(submissions), handle)
    return build_cf_snapshot(user, submissions)


async def fetch_codeforces(handle: str) -> FetchResult:
    return await run_fetch("CF", handle, collect_codeforces)
