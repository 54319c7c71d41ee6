# api/client.py

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

import requests
from pydantic import ValidationError
from requests.exceptions import ConnectionError, RequestException, Timeout

from devtrack.core.config import settings
from devtrack.core.errors import (
    FetchErrorKind,
    MalformedResponseError,
    NotFoundError,
    TelemetryError,
    TransientError,
)
from devtrack.schemas.telemetry import ExternalStatSnapshot, FetchResult

logger = logging.getLogger(__name__)

USER_AGENT = "devtrack/1.0"


def _request(method, url, *, ok_statuses: Iterable[int] = (), **kwargs) -> Any:
    """
    Perform a JSON request with the retry policy shared by all platform clients.

    Timeouts are retried up to FETCH_MAX_RETRIES extra times; everything else
    is mapped onto the telemetry error taxonomy immediately.
    """
    kwargs.setdefault("timeout", settings.FETCH_TIMEOUT_SECONDS)
    headers = {"User-Agent": USER_AGENT}
    headers.update(kwargs.pop("headers", None) or {})
    attempts = settings.FETCH_MAX_RETRIES + 1

    for attempt in range(attempts):
        try:
            response = requests.request(method, url, headers=headers, **kwargs)
        except Timeout:
            logger.info("Timeout on %s (attempt %d/%d)", url, attempt + 1, attempts)
            if attempt + 1 < attempts:
                time.sleep(settings.FETCH_RETRY_DELAY)
            continue
        except ConnectionError as e:
            raise TransientError(f"cannot connect: {e}") from e
        except RequestException as e:
            raise TransientError(str(e)) from e

        status = response.status_code
        if status == 404:
            raise NotFoundError(url)
        if status == 429 or status >= 500:
            raise TransientError(f"HTTP {status} from {url}")
        if status >= 400 and status not in ok_statuses:
            raise MalformedResponseError(f"HTTP {status} from {url}")

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"non-JSON body from {url}") from e

    raise TransientError(f"{url} failed after {attempts} attempts")


def get_json(url: str, *, params: Optional[Dict[str, Any]] = None,
             headers: Optional[Dict[str, str]] = None, ok_statuses: Iterable[int] = ()) -> Any:
    return _request("GET", url, params=params, headers=headers, ok_statuses=ok_statuses)


def post_json(url: str, payload: Dict[str, Any], *,
              headers: Optional[Dict[str, str]] = None, ok_statuses: Iterable[int] = ()) -> Any:
    return _request("POST", url, json=payload, headers=headers, ok_statuses=ok_statuses)


async def run_fetch(
    platform: str,
    handle: Optional[str],
    collect: Callable[[str], Awaitable[ExternalStatSnapshot]],
) -> FetchResult:
    """
    Public fetch boundary: never raises.

    An empty handle is not an error, it just means the platform is not
    configured for this user.
    """
    handle = (handle or "").strip()
    if not handle:
        return FetchResult(platform=platform, error=FetchErrorKind.CONFIGURATION_MISSING)

    try:
        snapshot = await asyncio.wait_for(collect(handle), timeout=settings.FETCH_DEADLINE_SECONDS)
    except TelemetryError as e:
        kind = e.kind
        logger.warning("%s fetch failed for %r (%s): %s", platform, handle, kind.value, e)
    except ValidationError as e:
        kind = FetchErrorKind.MALFORMED
        logger.warning("%s fetch failed for %r (malformed): %s", platform, handle, e.errors()[:1])
    except asyncio.TimeoutError:
        kind = FetchErrorKind.TRANSIENT
        logger.warning("%s fetch for %r exceeded %.0fs", platform, handle, settings.FETCH_DEADLINE_SECONDS)
    except (KeyError, TypeError, ValueError) as e:
        kind = FetchErrorKind.MALFORMED
        logger.warning("%s fetch failed for %r (malformed): %s", platform, handle, e)
    except Exception:
        kind = FetchErrorKind.MALFORMED
        logger.exception("%s fetch failed for %r", platform, handle)
    else:
        logger.info("%s snapshot fetched for %r", platform, handle)
        return FetchResult(platform=platform, snapshot=snapshot)

    return FetchResult(platform=platform, error=kind)
