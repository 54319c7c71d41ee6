# api/leetcode_api.py

import asyncio
import json
import logging
from datetime import date, datetime, timezone
from typing import Optional, Set

from devtrack.api.client import post_json, run_fetch
from devtrack.core.errors import MalformedResponseError, NotFoundError
from devtrack.schemas.telemetry import FetchResult, LCMatchedUser, LeetCodeSnapshot

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://leetcode.com/graphql/"

PROFILE_QUERY = """
query userProfile($username: String!) {
  matchedUser(username: $username) {
    username
    profile {
      ranking
    }
    submitStats {
      acSubmissionNum {
        difficulty
        count
      }
    }
    userCalendar {
      submissionCalendar
    }
  }
}
"""


def parse_submission_calendar(raw: Optional[str]) -> Set[date]:
    """
    submissionCalendar is a JSON string of {unix_seconds: count}.
    Anything unparsable yields an empty set.
    """
    if not raw:
        return set()
    try:
        calendar = json.loads(raw)
        return {
            datetime.fromtimestamp(int(ts), tz=timezone.utc).date()
            for ts, count in calendar.items()
            if count
        }
    except (ValueError, TypeError, AttributeError, OverflowError, OSError):
        logger.debug("Unparsable LeetCode submission calendar")
        return set()


def fetch_lc_profile(username: str) -> LCMatchedUser:
    payload = {"query": PROFILE_QUERY, "variables": {"username": username}}
    headers = {
        "Referer": f"https://leetcode.com/{username}/",
        "Origin": "https://leetcode.com",
        "Content-Type": "application/json",
    }
    data = post_json(GRAPHQL_URL, payload, headers=headers)
    if not isinstance(data, dict):
        raise MalformedResponseError("unexpected LeetCode payload")

    matched = (data.get("data") or {}).get("matchedUser")
    if matched is None:
        errors = data.get("errors") or []
        first = errors[0] if isinstance(errors, list) and errors else None
        message = first.get("message", "user not found") if isinstance(first, dict) else str(first or "user not found")
        raise NotFoundError(f"LeetCode user '{username}': {message}")

    return LCMatchedUser.model_validate(matched)


def build_lc_snapshot(username: str, user: LCMatchedUser, now: datetime = None) -> LeetCodeSnapshot:
    now = now or datetime.now(timezone.utc)
    calendar = user.user_calendar.submission_calendar if user.user_calendar else None
    easy, medium, hard = user.solved("Easy"), user.solved("Medium"), user.solved("Hard")
    total = user.solved("All") or easy + medium + hard

    return LeetCodeSnapshot(
        handle=user.username or username,
        rank=str(user.profile.ranking) if user.profile.ranking else None,
        solved_count=total,
        easy_solved=easy,
        medium_solved=medium,
        hard_solved=hard,
        ranking=user.profile.ranking or 0,
        recent_activity_dates=parse_submission_calendar(calendar),
        fetched_at=now,
    )


async def collect_leetcode(username: str) -> LeetCodeSnapshot:
    user = await asyncio.to_thread(fetch_lc_profile, username)
    return build_lc_snapshot(username, user)


async def fetch_leetcode(username: str) -> FetchResult:
    return await run_fetch("LC", username, collect_leetcode)
