import asyncio
import logging
from typing import Awaitable, Callable, Dict, Iterable, Mapping, Optional

from devtrack.api.codeforces_api import fetch_codeforces
from devtrack.api.github_api import fetch_github
from devtrack.api.leetcode_api import fetch_leetcode
from devtrack.schemas.telemetry import FetchResult

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[FetchResult]]

PLATFORMS = ("CF", "LC", "GH")

DEFAULT_FETCHERS: Dict[str, Fetcher] = {
    "CF": fetch_codeforces,
    "LC": fetch_leetcode,
    "GH": fetch_github,
}


async def fetch_platforms(
    handles: Mapping[str, Optional[str]],
    platforms: Optional[Iterable[str]] = None,
    fetchers: Optional[Mapping[str, Fetcher]] = None,
) -> Dict[str, FetchResult]:
    """
    Fetch the requested platforms concurrently and wait for all of them.

    Every fetcher resolves to a FetchResult (never raises), so the gather
    is a plain barrier: nothing downstream starts until all three settle.
    """
    fetchers = fetchers or DEFAULT_FETCHERS
    wanted = [p for p in (platforms or PLATFORMS) if p in fetchers]
    results = await asyncio.gather(*(fetchers[p](handles.get(p) or "") for p in wanted))
    by_platform = dict(zip(wanted, results))

    failed = [p for p, r in by_platform.items() if r.error is not None]
    if failed:
        logger.debug("Platforms without fresh data: %s", ", ".join(failed))
    return by_platform
