"""
The aggregation pipeline: normalize -> aggregate -> score -> recommend.

Pure and synchronous. It takes already-fetched snapshots and stored rows,
never touches the network or the database, and never raises on absent data.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence

from devtrack.analysis.skill_score import compute_skill_profile
from devtrack.analysis.weakness_analysis import TopicStat, aggregate_topics
from devtrack.data.roadmap import RoadmapTopicState, default_roadmap
from devtrack.preprocess.normalize import (
    ActivityMap,
    StudySessionEntry,
    build_daily_history,
    merge_activity,
)
from devtrack.preprocess.problem_bank import ProblemBankEntry, load_problem_bank
from devtrack.recommender.recommendations import select_recommendations
from devtrack.schemas.profile import SkillProfile
from devtrack.schemas.recommendation import RecommendationSet
from devtrack.schemas.telemetry import ExternalStats


@dataclass
class PipelineInputs:
    stats: ExternalStats = field(default_factory=ExternalStats)
    sessions: Sequence[StudySessionEntry] = ()
    roadmap: Optional[Sequence[RoadmapTopicState]] = None
    bank: Optional[Sequence[ProblemBankEntry]] = None
    today: Optional[date] = None
    recommendation_limit: int = 3


@dataclass
class PipelineResult:
    profile: SkillProfile
    topic_stats: Dict[str, TopicStat]
    activity: ActivityMap
    recommendations: RecommendationSet


def build_activity(stats: ExternalStats, sessions: Sequence[StudySessionEntry]) -> ActivityMap:
    history = build_daily_history(sessions)
    return merge_activity(
        history,
        cf_dates=stats.cf.recent_activity_dates if stats.cf else (),
        gh_dates=stats.gh.recent_activity_dates if stats.gh else (),
        lc_dates=stats.lc.recent_activity_dates if stats.lc else (),
    )


def run_pipeline(inputs: PipelineInputs) -> PipelineResult:
    today = inputs.today or datetime.now(timezone.utc).date()
    roadmap = list(inputs.roadmap) if inputs.roadmap is not None else default_roadmap()
    bank = inputs.bank if inputs.bank is not None else load_problem_bank()
    stats = inputs.stats

    activity = build_activity(stats, inputs.sessions)
    topic_stats = aggregate_topics(stats.cf.attempts if stats.cf else [])
    profile = compute_skill_profile(
        stats,
        activity,
        topic_stats,
        roadmap,
        session_dates=[s.date for s in inputs.sessions],
        today=today,
    )
    recommendations = select_recommendations(profile, bank, roadmap, limit=inputs.recommendation_limit)

    return PipelineResult(
        profile=profile,
        topic_stats=topic_stats,
        activity=activity,
        recommendations=recommendations,
    )
