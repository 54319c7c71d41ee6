# analysis/skill_score.py

from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence

from devtrack.analysis.consistency import (
    consistency_score,
    learning_velocity,
    round_half_up,
    study_streak,
)
from devtrack.analysis.weakness_analysis import TopicStat, classify_topics
from devtrack.data.roadmap import RoadmapCompletion, RoadmapTopicState, roadmap_completion
from devtrack.schemas.profile import SkillProfile, TopicMastery
from devtrack.schemas.telemetry import ExternalStats, GitHubSnapshot

# ---------- SCORE CALIBRATION ----------
CF_RATING_CAP, CF_POINTS = 3500, 40
LC_SOLVED_CAP, LC_POINTS = 3000, 35
ROADMAP_POINTS = 25

GH_REPO_CAP, GH_REPO_POINTS = 50, 30
GH_COMMIT_CAP, GH_COMMIT_POINTS = 100, 40
GH_STAR_CAP, GH_STAR_POINTS = 200, 30

DSA_WEIGHT, DEV_WEIGHT, CONSISTENCY_WEIGHT = 0.4, 0.3, 0.3


def _clamp(x: int, hi: int = 100) -> int:
    return max(0, min(hi, x))


def dsa_score(cf_rating: Optional[int], lc_solved: Optional[int], completion: RoadmapCompletion) -> int:
    cf_points = min(CF_POINTS, round_half_up((cf_rating or 0) / CF_RATING_CAP * CF_POINTS))
    lc_points = min(LC_POINTS, round_half_up((lc_solved or 0) / LC_SOLVED_CAP * LC_POINTS))
    roadmap_points = round_half_up(completion.ratio * ROADMAP_POINTS)
    return _clamp(cf_points + lc_points + roadmap_points)


def development_score(gh: Optional[GitHubSnapshot]) -> int:
    if gh is None:
        return 0
    repo_points = min(GH_REPO_POINTS, round_half_up(gh.public_repos / GH_REPO_CAP * GH_REPO_POINTS))
    commit_points = min(GH_COMMIT_POINTS, round_half_up(gh.last_month_commits / GH_COMMIT_CAP * GH_COMMIT_POINTS))
    star_points = min(GH_STAR_POINTS, round_half_up(gh.total_stars / GH_STAR_CAP * GH_STAR_POINTS))
    return _clamp(repo_points + commit_points + star_points)


def overall_score(dsa: int, dev: int, consistency: int) -> int:
    return _clamp(round_half_up(dsa * DSA_WEIGHT + dev * DEV_WEIGHT + consistency * CONSISTENCY_WEIGHT))


def topic_mastery(roadmap: Sequence[RoadmapTopicState]) -> List[TopicMastery]:
    return [
        TopicMastery(topic=s.title, score=_clamp(round_half_up(s.progress)))
        for s in roadmap
        if s.progress > 0
    ]


def compute_skill_profile(
    stats: ExternalStats,
    activity: Dict,
    topic_stats: Dict[str, TopicStat],
    roadmap: Sequence[RoadmapTopicState],
    session_dates: Sequence[date] = (),
    today: Optional[date] = None,
) -> SkillProfile:
    """
    Pure, total function of its inputs. A missing platform snapshot is a
    zero contribution; nothing here raises on absent data.
    """
    today = today or datetime.now(timezone.utc).date()
    cf, lc, gh = stats.cf, stats.lc, stats.gh
    completion = roadmap_completion(roadmap)

    dsa = dsa_score(cf.rating if cf else 0, lc.solved_count if lc else 0, completion)
    dev = development_score(gh)
    consistency = consistency_score(activity, today)
    weak, strong = classify_topics(topic_stats)

    return SkillProfile(
        dsa_score=dsa,
        development_score=dev,
        consistency_score=consistency,
        overall_score=overall_score(dsa, dev, consistency),
        weak_topics=weak,
        strong_topics=strong,
        study_streak_days=study_streak(session_dates, today),
        learning_velocity=learning_velocity(session_dates, today),
        cf_rating=(cf.rating or 0) if cf else 0,
        cf_max_rating=(cf.max_rating or 0) if cf else 0,
        cf_rank=(cf.rank or "—") if cf else "—",
        lc_total_solved=lc.solved_count if lc else 0,
        lc_easy_solved=lc.easy_solved if lc else 0,
        lc_medium_solved=lc.medium_solved if lc else 0,
        lc_hard_solved=lc.hard_solved if lc else 0,
        total_problems_solved=(cf.solved_count if cf else 0) + (lc.solved_count if lc else 0),
        gh_public_repos=gh.public_repos if gh else 0,
        gh_last_month_commits=gh.last_month_commits if gh else 0,
        gh_total_stars=gh.total_stars if gh else 0,
        gh_top_languages=list(gh.top_languages) if gh else [],
        devtrack_sessions=len(session_dates),
        roadmap_completed=completion.completed,
        roadmap_total=completion.total,
        topic_mastery=topic_mastery(roadmap),
        computed_at=datetime.now(timezone.utc),
    )
