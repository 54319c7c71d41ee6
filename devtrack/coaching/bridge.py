# coaching/bridge.py

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence

from devtrack.coaching.oracle import CoachingOracle
from devtrack.core.config import settings
from devtrack.core.errors import CoachingError
from devtrack.preprocess.normalize import StudySessionEntry
from devtrack.schemas.coaching import CoachingAnalysis, PriorityTopic
from devtrack.schemas.profile import SkillProfile

logger = logging.getLogger(__name__)

FALLBACK_DAILY_PLAN = [
    "Complete 1 Micro-task from your pending DevTrack Roadmap",
    "Solve 1 algorithmic problem to keep your brain sharp",
    "Review your consistency heatmap to plan tomorrow's session",
]
FALLBACK_INSIGHT = "Keep pushing forward, consistency is the key to engineering."
PRIORITIES = ("High", "Medium", "Low")
RECENT_SESSION_LIMIT = 10


def build_coaching_summary(profile: SkillProfile, sessions: Sequence[StudySessionEntry] = ()) -> str:
    lines = [
        f"LeetCode Solved: {profile.lc_total_solved} (Easy: {profile.lc_easy_solved}, "
        f"Med: {profile.lc_medium_solved}, Hard: {profile.lc_hard_solved})",
        f"Codeforces Rating: {profile.cf_rating} (Rank: {profile.cf_rank})",
        f"GitHub Activity: {profile.gh_last_month_commits} commits this month, "
        f"{profile.gh_public_repos} public repos",
        f"DSA Score: {profile.dsa_score}/100",
        f"Development Score: {profile.development_score}/100",
        f"Consistency Score: {profile.consistency_score}/100",
        f"Overall Skill Score: {profile.overall_score}/100",
        f"Study Streak: {profile.study_streak_days} days, velocity {profile.learning_velocity} sessions/week",
        f"Roadmap: {profile.roadmap_completed}/{profile.roadmap_total} topics completed",
        f"Weak Topics: {', '.join(profile.weak_topics) or 'None identified'}",
        f"Strong Topics: {', '.join(profile.strong_topics) or 'None identified'}",
    ]

    recent = sorted(sessions, key=lambda s: s.date, reverse=True)[:RECENT_SESSION_LIMIT]
    if recent:
        lines.append("Recent Sessions:")
        for s in recent:
            lines.append(f"- {s.date.isoformat()}: {s.topic} ({s.category}, {s.duration_minutes} min)")
    else:
        lines.append("Recent Sessions: none logged")

    return "\n".join(lines)


def _string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def _priority_topics(value: Any) -> List[PriorityTopic]:
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        topic = item.get("topic")
        priority = item.get("priority")
        if not isinstance(topic, str) or not topic.strip():
            continue
        if isinstance(priority, str):
            priority = priority.strip().capitalize()
        if priority not in PRIORITIES:
            continue
        reason = item.get("reason")
        items.append(PriorityTopic(
            topic=topic.strip(),
            reason=reason.strip() if isinstance(reason, str) else "",
            priority=priority,
        ))
    return items


def _derived_priorities(weak_topics: Sequence[str]) -> List[PriorityTopic]:
    return [
        PriorityTopic(topic=t, reason="Low success rate in recent attempts", priority="High")
        for t in weak_topics[:3]
    ]


def fallback_analysis(profile: SkillProfile) -> CoachingAnalysis:
    return CoachingAnalysis(
        weak_topics=list(profile.weak_topics),
        strong_topics=list(profile.strong_topics),
        priority_topics=_derived_priorities(profile.weak_topics),
        daily_plan=list(FALLBACK_DAILY_PLAN),
        motivational_insight=FALLBACK_INSIGHT,
        source="fallback",
        generated_at=datetime.now(timezone.utc),
    )


def parse_coaching_response(data: Any, profile: SkillProfile) -> CoachingAnalysis:
    """
    Validate the oracle's JSON field by field. Each missing or malformed
    field is replaced by its default; the rest of the answer is kept.
    """
    if not isinstance(data, Mapping):
        return fallback_analysis(profile)

    weak = _string_list(data.get("weakTopics"))
    strong = _string_list(data.get("strongTopics"))
    weak = weak if weak is not None else list(profile.weak_topics)
    strong = strong if strong is not None else list(profile.strong_topics)

    priorities = _priority_topics(data.get("priorityTopics")) or _derived_priorities(weak)

    plan = _string_list(data.get("dailyPlan")) or []
    plan = plan[:3] if len(plan) >= 3 else list(FALLBACK_DAILY_PLAN)

    insight = data.get("motivationalInsight")
    insight = insight.strip() if isinstance(insight, str) and insight.strip() else FALLBACK_INSIGHT

    return CoachingAnalysis(
        weak_topics=weak,
        strong_topics=strong,
        priority_topics=priorities,
        daily_plan=plan,
        motivational_insight=insight,
        source="oracle",
        generated_at=datetime.now(timezone.utc),
    )


async def request_coaching(
    profile: SkillProfile,
    sessions: Sequence[StudySessionEntry] = (),
    oracle: Optional[CoachingOracle] = None,
    timeout: Optional[float] = None,
) -> CoachingAnalysis:
    """Never raises: a missing, slow or failing oracle yields the static fallback."""
    if oracle is None:
        return fallback_analysis(profile)

    summary = build_coaching_summary(profile, sessions)
    timeout = settings.COACHING_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        data = await asyncio.wait_for(asyncio.to_thread(oracle.analyze, summary), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Coaching oracle timed out after %.0fs, using fallback", timeout)
        return fallback_analysis(profile)
    except CoachingError as e:
        logger.warning("Coaching oracle failed, using fallback: %s", e)
        return fallback_analysis(profile)
    except Exception:
        logger.exception("Unexpected coaching oracle failure, using fallback")
        return fallback_analysis(profile)

    return parse_coaching_response(data, profile)
