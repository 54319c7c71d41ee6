"""
Sync orchestration: per-user overlap control and the end-to-end pass

Fetchers are replaced with coroutines returning canned FetchResults and
the repository is the in-memory fake from conftest.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from devtrack.core.errors import FetchErrorKind
from devtrack.schemas.telemetry import (
    AttemptRecord,
    CodeforcesSnapshot,
    ExternalStats,
    FetchResult,
    GitHubSnapshot,
)
from devtrack.services.sync_registry import SyncRegistry
from devtrack.services.sync_service import SyncService, UserNotFound, platforms_to_refresh
from devtrack.services.telemetry import fetch_platforms

from conftest import TODAY


def _cf_snapshot(handle="cf_h"):
    return CodeforcesSnapshot(
        handle=handle, rating=1400, max_rating=1450, rank="specialist", solved_count=2,
        recent_activity_dates=[TODAY],
        attempts=[
            AttemptRecord(problem_id="4A", topic="Math", rating=800, verdict="OK"),
            AttemptRecord(problem_id="455A", topic="DP", rating=1500, verdict="WRONG_ANSWER"),
            AttemptRecord(problem_id="455A", topic="DP", rating=1500, verdict="OK"),
        ],
    )


class RecordingFetchers(dict):
    """Platform -> fetcher mapping that records which handles were fetched."""

    def __init__(self, results, gate=None):
        super().__init__()
        self.calls = []
        for platform, result in results.items():
            self[platform] = self._make(platform, result, gate)

    def _make(self, platform, result, gate):
        async def fetch(handle):
            self.calls.append((platform, handle))
            if gate is not None:
                await gate.wait()
            return result
        return fetch


class TestSyncRegistry:

    def test_overlapping_trigger_is_a_no_op(self):
        async def scenario():
            registry = SyncRegistry()
            started, release = asyncio.Event(), asyncio.Event()
            runs = []

            async def job():
                runs.append("run")
                started.set()
                await release.wait()
                return "done"

            first = asyncio.create_task(registry.run(7, job))
            await started.wait()
            assert registry.is_syncing(7)

            second = await registry.run(7, job)

            release.set()
            assert await first == "done"
            return second, runs, registry.is_syncing(7)

        second, runs, still_syncing = asyncio.run(scenario())

        assert second is None
        assert runs == ["run"]
        assert not still_syncing

    def test_forced_trigger_queues_behind_in_flight_pass(self):
        async def scenario():
            registry = SyncRegistry()
            release = asyncio.Event()
            order = []

            async def slow():
                order.append("first:start")
                await release.wait()
                order.append("first:end")

            async def fast():
                order.append("second")

            first = asyncio.create_task(registry.run(1, slow))
            await asyncio.sleep(0)
            second = asyncio.create_task(registry.run(1, fast, force=True))
            await asyncio.sleep(0)
            release.set()
            await asyncio.gather(first, second)
            return order

        assert asyncio.run(scenario()) == ["first:start", "first:end", "second"]

    def test_different_users_do_not_block(self):
        async def scenario():
            registry = SyncRegistry()
            release = asyncio.Event()

            async def blocked():
                await release.wait()

            async def quick():
                return "ok"

            first = asyncio.create_task(registry.run(1, blocked))
            await asyncio.sleep(0)
            result = await registry.run(2, quick)
            in_flight = registry.in_flight()
            release.set()
            await first
            return result, in_flight

        result, in_flight = asyncio.run(scenario())
        assert result == "ok"
        assert in_flight == [1]

    def test_failed_job_releases_the_user(self):
        async def scenario():
            registry = SyncRegistry()

            async def broken():
                raise RuntimeError("db down")

            with pytest.raises(RuntimeError):
                await registry.run(3, broken)
            return registry.is_syncing(3)

        assert asyncio.run(scenario()) is False


def test_fetch_platforms_waits_for_all():
    fetchers = RecordingFetchers({
        "CF": FetchResult("CF", snapshot=_cf_snapshot()),
        "LC": FetchResult("LC", error=FetchErrorKind.CONFIGURATION_MISSING),
        "GH": FetchResult("GH", error=FetchErrorKind.TRANSIENT),
    })

    results = asyncio.run(fetch_platforms({"CF": "cf_h", "GH": "octo"}, fetchers=fetchers))

    assert set(results) == {"CF", "LC", "GH"}
    assert results["CF"].ok
    assert sorted(fetchers.calls) == [("CF", "cf_h"), ("GH", "octo"), ("LC", "")]


class TestPlatformsToRefresh:

    def test_only_configured_and_stale(self, repo):
        user = repo.add_user("asha", codeforces_handle="cf_h", github_username="octo")
        now = datetime.now(timezone.utc)
        stats = ExternalStats(
            cf=_cf_snapshot().model_copy(update={"fetched_at": now - timedelta(hours=1)}),
            gh=GitHubSnapshot(handle="octo", fetched_at=now - timedelta(hours=30)),
        )

        assert platforms_to_refresh(user, stats, force=False, now=now) == ["GH"]
        assert platforms_to_refresh(user, stats, force=True, now=now) == ["CF", "GH"]
        assert platforms_to_refresh(user, ExternalStats(), force=False, now=now) == ["CF", "GH"]


class TestSyncService:

    def test_full_pass_persists_profile_and_rank(self, repo):
        user = repo.add_user("asha", codeforces_handle="cf_h", github_username="octo")
        old_gh = GitHubSnapshot(
            handle="octo", public_repos=9, fetched_at=datetime.now(timezone.utc) - timedelta(days=2),
        )
        repo.snapshots[user.id] = {"gh": old_gh}
        fetchers = RecordingFetchers({
            "CF": FetchResult("CF", snapshot=_cf_snapshot()),
            "LC": FetchResult("LC", error=FetchErrorKind.NOT_FOUND),
            "GH": FetchResult("GH", error=FetchErrorKind.TRANSIENT),
        })
        service = SyncService(repo, registry=SyncRegistry(), fetchers=fetchers, bank=())

        report = asyncio.run(service.sync_user(user.id))

        assert report.status == "completed"
        assert report.fetched == ["CF"]
        assert report.errors == {"GH": FetchErrorKind.TRANSIENT}
        # LeetCode is not configured, so it is never fetched
        assert sorted(p for p, _ in fetchers.calls) == ["CF", "GH"]

        # the failed GitHub fetch keeps the previous snapshot
        assert repo.snapshots[user.id]["gh"] is old_gh
        assert report.profile.gh_public_repos == 9
        assert report.profile.cf_rating == 1400

        record = repo.profiles[user.id]
        assert record.overall_score == report.profile.overall_score
        assert {row["topic"] for row in record.topic_stats} == {"Math", "DP"}
        assert len(repo.recommendations[user.id]) >= 3
        assert [r.rank for r in repo.ranks[user.id]] == [1]

    def test_fresh_snapshots_are_not_refetched(self, repo):
        user = repo.add_user("ben", codeforces_handle="cf_h")
        repo.snapshots[user.id] = {"cf": _cf_snapshot()}
        fetchers = RecordingFetchers({"CF": FetchResult("CF", snapshot=_cf_snapshot())})
        service = SyncService(repo, registry=SyncRegistry(), fetchers=fetchers, bank=())

        report = asyncio.run(service.sync_user(user.id))

        assert fetchers.calls == []
        assert report.fetched == []
        assert report.profile.cf_rating == 1400

        asyncio.run(service.sync_user(user.id, force=True))
        assert fetchers.calls == [("CF", "cf_h")]

    def test_unknown_user(self, repo):
        service = SyncService(repo, registry=SyncRegistry(), fetchers=RecordingFetchers({}), bank=())
        with pytest.raises(UserNotFound):
            asyncio.run(service.sync_user(404))

    def test_overlapping_sync_calls(self, repo):
        user = repo.add_user("cleo", codeforces_handle="cf_h")

        async def scenario():
            gate = asyncio.Event()
            fetchers = RecordingFetchers({"CF": FetchResult("CF", snapshot=_cf_snapshot())}, gate=gate)
            service = SyncService(repo, registry=SyncRegistry(), fetchers=fetchers, bank=())

            first = asyncio.create_task(service.sync_user(user.id))
            while not fetchers.calls:
                await asyncio.sleep(0)
            syncing = service.is_syncing(user.id)
            second = await service.sync_user(user.id)
            gate.set()
            return syncing, await first, second, service.is_syncing(user.id)

        syncing, first, second, after = asyncio.run(scenario())

        assert syncing is True
        assert first.status == "completed"
        assert second.status == "skipped"
        assert after is False
