# api/github_api.py

import asyncio
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List
from urllib.parse import quote

from devtrack.api.client import get_json, run_fetch
from devtrack.core.config import settings
from devtrack.core.errors import MalformedResponseError
from devtrack.schemas.telemetry import FetchResult, GHEvent, GHRepo, GHUser, GitHubSnapshot

logger = logging.getLogger(__name__)

BASE_URL = "https://api.github.com"
RECENT_DAYS = 90
LAST_MONTH_DAYS = 30


def _headers() -> Dict[str, str]:
    headers = {"Accept": "application/vnd.github.v3+json"}
    if settings.GITHUB_TOKEN:
        headers["Authorization"] = f"Bearer {settings.GITHUB_TOKEN}"
    return headers


def _get_list(url: str, params: dict) -> list:
    data = get_json(url, params=params, headers=_headers())
    if not isinstance(data, list):
        raise MalformedResponseError(f"expected a list from {url}")
    return data


def fetch_gh_user(username: str) -> GHUser:
    return GHUser.model_validate(get_json(f"{BASE_URL}/users/{quote(username)}", headers=_headers()))


def fetch_gh_repos(username: str) -> List[GHRepo]:
    # First page only: stars are an undercount for users with more than 100 repos.
    data = _get_list(f"{BASE_URL}/users/{quote(username)}/repos", {"per_page": 100, "sort": "pushed"})
    return [GHRepo.model_validate(r) for r in data]


def fetch_gh_events(username: str) -> List[GHEvent]:
    data = _get_list(f"{BASE_URL}/users/{quote(username)}/events/public", {"per_page": 100})
    return [GHEvent.model_validate(e) for e in data]


def build_gh_snapshot(user: GHUser, repos: List[GHRepo], events: List[GHEvent], now: datetime = None) -> GitHubSnapshot:
    now = now or datetime.now(timezone.utc)
    recent_cutoff = now - timedelta(days=RECENT_DAYS)
    month_cutoff = now - timedelta(days=LAST_MONTH_DAYS)

    languages = Counter(r.language for r in repos if r.language)
    top_languages = [lang for lang, _ in languages.most_common(5)]

    total_commits = 0
    last_month = 0
    push_dates = set()
    for ev in events:
        if ev.type != "PushEvent":
            continue
        created = ev.created_at if ev.created_at.tzinfo else ev.created_at.replace(tzinfo=timezone.utc)
        if created < recent_cutoff:
            continue
        commits = ev.commit_count
        total_commits += commits
        if created >= month_cutoff:
            last_month += commits
        push_dates.add(created.date())

    return GitHubSnapshot(
        handle=user.login,
        solved_count=0,
        public_repos=user.public_repos,
        followers=user.followers,
        following=user.following,
        total_stars=sum(r.stargazers_count for r in repos),
        total_commits_estimate=total_commits,
        last_month_commits=last_month,
        top_languages=top_languages,
        recent_activity_dates=push_dates,
        fetched_at=now,
    )


async def collect_github(username: str) -> GitHubSnapshot:
    user, repos, events = await asyncio.gather(
        asyncio.to_thread(fetch_gh_user, username),
        asyncio.to_thread(fetch_gh_repos, username),
        asyncio.to_thread(fetch_gh_events, username),
    )
    return build_gh_snapshot(user, repos, events)


async def fetch_github(username: str) -> FetchResult:
    return await run_fetch("GH", username, collect_github)
