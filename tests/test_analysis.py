"""
Topic classification, consistency metrics and skill scoring

All functions under test are pure; dates are pinned to TODAY.
"""

from dataclasses import replace
from datetime import timedelta
from types import SimpleNamespace

from devtrack.analysis.consistency import (
    consistency_score,
    learning_velocity,
    round_half_up,
    study_streak,
)
from devtrack.analysis.skill_score import (
    compute_skill_profile,
    development_score,
    dsa_score,
    overall_score,
)
from devtrack.analysis.weakness_analysis import (
    TopicStat,
    aggregate_topics,
    classify_topics,
    find_active_topic,
)
from devtrack.data.roadmap import RoadmapCompletion, default_roadmap, overlay_progress
from devtrack.preprocess.normalize import DailyActivity, merge_activity
from devtrack.schemas.telemetry import (
    AttemptRecord,
    CodeforcesSnapshot,
    ExternalStats,
    GitHubSnapshot,
    LeetCodeSnapshot,
)

from conftest import TODAY, days_ago


def _stat(topic, results):
    """results: list of (verdict, rating)"""
    stat = TopicStat(topic=topic)
    for verdict, rating in results:
        stat.record(verdict, rating)
    return stat


def _with_progress(roadmap, **progress):
    return [
        replace(s, progress=progress[s.topic_id]) if s.topic_id in progress else s
        for s in roadmap
    ]


class TestTopicStats:

    def test_running_mean_over_solved_only(self):
        stat = _stat("DP", [("OK", 1000), ("WRONG_ANSWER", 3000), ("OK", 1600)])

        assert stat.attempts == 3
        assert stat.solved == 2
        assert stat.avg_rating == 1300

    def test_unrated_solve_counts_as_800(self):
        stat = _stat("Math", [("OK", None), ("OK", 1200)])
        assert stat.avg_rating == 1000

    def test_aggregate_accepts_records_and_dicts(self):
        stats = aggregate_topics([
            AttemptRecord(problem_id="1A", topic="Graphs", verdict="OK", rating=1400),
            {"topic": "Graphs", "verdict": "WRONG_ANSWER", "rating": 1500},
            {"topic": None, "verdict": "AC", "rating": 900},
        ])

        assert stats["Graphs"].attempts == 2 and stats["Graphs"].solved == 1
        assert stats["General"].solved == 1

    def test_solved_never_exceeds_attempts(self):
        stats = aggregate_topics(
            {"topic": t, "verdict": v, "rating": 1000}
            for t in ("A", "B", "C") for v in ("OK", "OK", "TIME_LIMIT_EXCEEDED")
        )
        for stat in stats.values():
            assert 0 <= stat.solved <= stat.attempts


class TestClassification:

    def test_low_success_rate_is_weak_regardless_of_rating(self):
        stats = {"Graphs": _stat("Graphs", [("OK", 2400)] + [("WRONG_ANSWER", 2400)] * 4)}

        weak, strong = classify_topics(stats)

        assert weak == ["Graphs"]
        assert strong == []

    def test_high_rate_and_rating_is_strong(self):
        stats = {"DP": _stat("DP", [("OK", 1400)] * 4)}

        weak, strong = classify_topics(stats)

        assert strong == ["DP"]
        assert weak == []

    def test_middling_rate_depends_on_rating(self):
        easy = _stat("Math", [("OK", 900), ("OK", 900), ("WRONG_ANSWER", 900)])
        hard = _stat("Trees", [("OK", 1500), ("OK", 1500), ("WRONG_ANSWER", 1500)])

        weak, strong = classify_topics({"Math": easy, "Trees": hard})

        assert weak == ["Math"]
        assert "Trees" not in strong

    def test_high_rate_low_rating_is_neither(self):
        weak, strong = classify_topics({"Implementation": _stat("Implementation", [("OK", 800)] * 5)})
        assert weak == [] and strong == []

    def test_weak_and_strong_are_disjoint(self):
        stats = {
            f"T{i}": _stat(f"T{i}", [("OK", 800 + 100 * i)] * i + [("WRONG_ANSWER", 1000)] * (5 - i))
            for i in range(6)
        }
        weak, strong = classify_topics(stats)
        assert not set(weak) & set(strong)


class TestActiveTopic:

    def test_highest_in_progress_roadmap_topic_wins(self):
        roadmap = _with_progress(default_roadmap(), **{"dsa-graphs": 40, "dsa-dp": 60})
        assert find_active_topic(roadmap, {}) == "DP"

    def test_completed_topics_are_not_active(self):
        roadmap = _with_progress(default_roadmap(), **{"dsa-dp": 100})
        stats = {"Math": _stat("Math", [("OK", 800)]), "Strings": _stat("Strings", [("WRONG_ANSWER", 800)])}
        assert find_active_topic(roadmap, stats) == "Strings"

    def test_defaults_to_math(self):
        assert find_active_topic(default_roadmap(), {}) == "Math"

    def test_equal_ratio_keeps_first_seen_topic(self):
        stats = {
            "Trees": _stat("Trees", [("OK", 1200), ("WRONG_ANSWER", 1200)]),
            "Greedy": _stat("Greedy", [("WRONG_ANSWER", 900), ("OK", 900)]),
        }
        assert find_active_topic(default_roadmap(), stats) == "Trees"


class TestConsistency:

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(2.4999) == 2

    def test_thirty_active_days_is_full_score(self):
        history = {days_ago(i): DailyActivity(minutes_studied=25) for i in range(30)}
        activity = merge_activity(history)
        assert consistency_score(activity, TODAY) == 100

    def test_partial_window(self):
        history = {days_ago(i): DailyActivity(minutes_studied=10) for i in range(0, 30, 2)}
        # platform-only days carry no minutes and do not count
        activity = merge_activity(history, cf_dates=[days_ago(1), days_ago(3)])
        assert consistency_score(activity, TODAY) == 50

    def test_days_outside_window_are_ignored(self):
        history = {days_ago(30 + i): DailyActivity(minutes_studied=60) for i in range(10)}
        assert consistency_score(merge_activity(history), TODAY) == 0

    def test_more_active_days_never_lower_the_score(self):
        scores = []
        for n in range(31):
            history = {days_ago(i): DailyActivity(minutes_studied=15) for i in range(n)}
            scores.append(consistency_score(merge_activity(history), TODAY))

        assert scores == sorted(scores)
        assert scores[0] == 0 and scores[-1] == 100

    def test_streak_counts_back_from_today(self):
        dates = [TODAY, days_ago(1), days_ago(2), days_ago(4)]
        assert study_streak(dates, TODAY) == 3

    def test_streak_may_start_yesterday(self):
        assert study_streak([days_ago(1), days_ago(2)], TODAY) == 2

    def test_streak_broken_before_yesterday(self):
        assert study_streak([days_ago(2), days_ago(3)], TODAY) == 0
        assert study_streak([], TODAY) == 0

    def test_streak_ignores_duplicate_days(self):
        assert study_streak([TODAY, TODAY, days_ago(1)], TODAY) == 2

    def test_learning_velocity(self):
        dates = [TODAY, days_ago(3), days_ago(13), days_ago(14), days_ago(15)]
        assert learning_velocity(dates, TODAY) == 1.5
        assert learning_velocity([days_ago(14)], TODAY) == 0.0
        assert learning_velocity([TODAY], TODAY) == 0.5
        assert learning_velocity([], TODAY) == 0.0


class TestSkillScore:

    def test_dsa_score_from_rating_only(self):
        assert dsa_score(1400, 0, RoadmapCompletion(completed=0, total=13)) == 16

    def test_dsa_score_is_capped(self):
        assert dsa_score(5000, 10000, RoadmapCompletion(completed=30, total=30)) == 100

    def test_dsa_score_is_monotone_in_rating(self):
        completion = RoadmapCompletion(completed=3, total=30)
        scores = [dsa_score(r, 150, completion) for r in range(0, 4000, 100)]
        assert scores == sorted(scores)

    def test_development_score(self):
        gh = GitHubSnapshot(handle="octo", public_repos=25, last_month_commits=50, total_stars=100)
        assert development_score(gh) == 50
        assert development_score(None) == 0

    def test_overall_score_weights(self):
        assert overall_score(16, 0, 100) == 36
        assert overall_score(100, 100, 100) == 100
        assert overall_score(0, 0, 0) == 0

    def test_profile_with_no_data_is_all_zero(self):
        profile = compute_skill_profile(ExternalStats(), {}, {}, default_roadmap(), today=TODAY)

        assert profile.overall_score == 0
        assert profile.dsa_score == profile.development_score == profile.consistency_score == 0
        assert profile.cf_rank == "—"
        assert profile.roadmap_total == 30
        assert profile.weak_topics == [] and profile.strong_topics == []

    def test_full_profile(self):
        stats = ExternalStats(
            cf=CodeforcesSnapshot(handle="cf", rating=1400, max_rating=1500, rank="specialist", solved_count=120),
            lc=LeetCodeSnapshot(handle="lc", solved_count=300, easy_solved=150, medium_solved=120, hard_solved=30),
            gh=GitHubSnapshot(handle="gh", public_repos=10, last_month_commits=20, total_stars=5, top_languages=["Go"]),
        )
        roadmap = overlay_progress([
            SimpleNamespace(topic_id="dsa-basics", progress=100, completed=True),
            SimpleNamespace(topic_id="dsa-arrays", progress=50, completed=False),
        ])
        sessions = [TODAY, days_ago(1), days_ago(2)]
        activity = merge_activity({d: DailyActivity(minutes_studied=30) for d in sessions})
        topic_stats = {"DP": _stat("DP", [("OK", 1400)] * 4)}

        profile = compute_skill_profile(stats, activity, topic_stats, roadmap, sessions, today=TODAY)

        # 16 (rating) + 4 (leetcode) + 1 (roadmap 1/30)
        assert profile.dsa_score == 21
        # 6 (repos) + 8 (commits) + 1 (stars)
        assert profile.development_score == 15
        assert profile.consistency_score == 10
        assert profile.overall_score == round_half_up(21 * 0.4 + 15 * 0.3 + 10 * 0.3)
        assert profile.total_problems_solved == 420
        assert profile.strong_topics == ["DP"]
        assert profile.study_streak_days == 3
        assert profile.learning_velocity == 1.5
        assert profile.roadmap_completed == 1
        assert [(m.topic, m.score) for m in profile.topic_mastery] == [("Programming Basics", 100), ("Arrays", 50)]
        assert profile.gh_top_languages == ["Go"]

    def test_scores_stay_in_bounds(self):
        extreme = ExternalStats(
            cf=CodeforcesSnapshot(handle="cf", rating=4000),
            lc=LeetCodeSnapshot(handle="lc", solved_count=9999),
            gh=GitHubSnapshot(handle="gh", public_repos=500, last_month_commits=5000, total_stars=10 ** 6),
        )
        activity = merge_activity({TODAY - timedelta(days=i): DailyActivity(minutes_studied=1) for i in range(90)})

        profile = compute_skill_profile(extreme, activity, {}, default_roadmap(), today=TODAY)

        for score in (profile.dsa_score, profile.development_score, profile.consistency_score, profile.overall_score):
            assert 0 <= score <= 100
