# recommender/dsa_tracks.py
"""
Two structured DSA tracks per user:
  Rating Progression - Codeforces problems just above the current rating.
  Topic Mastery      - problems for the topic the user is working on right now.
Never random; both are pure functions of stored data.
"""

from typing import Dict, List, Optional, Sequence

from devtrack.analysis.consistency import round_half_up
from devtrack.analysis.weakness_analysis import TopicStat, find_active_topic
from devtrack.data.roadmap import RoadmapTopicState
from devtrack.preprocess.problem_bank import ProblemBankEntry, rating_to_difficulty
from devtrack.schemas.recommendation import (
    DSAProblem,
    DSASuggestionResult,
    RatingProgressionTrack,
    TopicMasteryTrack,
)
from devtrack.schemas.telemetry import CodeforcesSnapshot

MISSING_CF_MESSAGE = (
    'Connect your Codeforces handle in Profile and click "Connect" '
    "to generate structured recommendations."
)

WINDOW_HALF_WIDTH = 50
NEXT_TOPIC_PROGRESS = 80
FALLBACK_TAGS = ("implementation", "math", "greedy", "strings")

TOPIC_ORDER = [
    "Math", "Implementation", "Strings", "Sorting", "Greedy",
    "Bit Manipulation", "Prefix Sum", "Binary Search", "Two Pointers",
    "Number Theory", "Arrays", "Recursion", "Graphs", "Trees", "DP",
    "Geometry", "Permutations",
]

PATTERNS = {
    "Math": ["Modular Arithmetic", "GCD/LCM", "Prime Sieve", "Number Properties"],
    "Strings": ["Two Pointers", "Sliding Window", "Pattern Matching", "Palindromes"],
    "Arrays": ["Prefix Sum", "Two Pointers", "Sliding Window", "Sorting Logic", "Edge Cases"],
    "Greedy": ["Interval Scheduling", "Exchange Argument", "Greedy Proof"],
    "Graphs": ["BFS", "DFS", "Shortest Path", "Connected Components"],
    "DP": ["Memoization", "Bottom-Up", "State Design", "Subset DP"],
    "Binary Search": ["Lower Bound", "Upper Bound", "Binary Search on Answer"],
    "Sorting": ["Comparison Sorts", "Counting Sort", "Merge Sort Variants"],
    "Implementation": ["Simulation", "Careful Case Analysis", "Off-by-One"],
    "Bit Manipulation": ["XOR Properties", "Bit Masking", "Bit Counting"],
    "Trees": ["Tree DFS", "Tree BFS", "Diameter", "LCA"],
    "Number Theory": ["Prime Factorization", "Euler Totient", "Modular Inverse"],
    "Recursion": ["Divide & Conquer", "Backtracking", "Base Cases"],
}
DEFAULT_PATTERNS = ["General Problem Solving", "Edge Cases"]


def rating_windows(rating: int):
    """(offset, count) pairs by rating band."""
    if rating < 1200:
        return [(0, 2), (100, 2), (200, 1)]
    if rating < 1600:
        return [(100, 3), (200, 2)]
    return [(200, 3), (300, 2)]


def _to_problem(p: ProblemBankEntry) -> DSAProblem:
    return DSAProblem(
        name=p.name, link=p.link, topic=p.topic, rating=p.rating,
        difficulty=rating_to_difficulty(p.rating),
    )


def build_rating_progression(
    cf: CodeforcesSnapshot,
    bank: Sequence[ProblemBankEntry],
) -> RatingProgressionTrack:
    rating = cf.rating or 800
    windows = rating_windows(rating)

    problems: List[DSAProblem] = []
    used = set()
    for offset, count in windows:
        lo = rating + offset - WINDOW_HALF_WIDTH
        hi = rating + offset + WINDOW_HALF_WIDTH
        pool = sorted((p for p in bank if lo <= p.rating <= hi), key=lambda p: p.name)
        added = 0
        for p in pool:
            if added >= count:
                break
            if p.name in used:
                continue
            used.add(p.name)
            problems.append(_to_problem(p))
            added += 1

    if not problems:
        for tag in FALLBACK_TAGS:
            problems.append(DSAProblem(
                name=f"CF Problemset: {tag} @{rating}",
                link=f"https://codeforces.com/problemset?tags={tag}&order=BY_RATING_ASC",
                topic=tag.capitalize(),
                rating=rating,
                difficulty=rating_to_difficulty(rating),
            ))

    lo_target = rating + windows[0][0]
    hi_target = rating + windows[-1][0] + 100
    return RatingProgressionTrack(
        target_range=f"{lo_target}-{hi_target}",
        cf_handle=cf.handle,
        current_rating=rating,
        rank=cf.rank or "unrated",
        problems_solved=cf.solved_count,
        problems=problems,
    )


def pattern_focus(topic: str, is_weak: bool) -> List[str]:
    patterns = PATTERNS.get(topic, DEFAULT_PATTERNS)
    return list(patterns) if is_weak else list(patterns[:2])


def _roadmap_progress_for(topic: str, roadmap: Sequence[RoadmapTopicState]) -> float:
    needle = topic.lower()
    for state in roadmap:
        if needle in state.topic_id.lower() or needle in state.title.lower():
            return state.progress
    return 0.0


def next_topic(topic: str) -> Optional[str]:
    lowered = [t.lower() for t in TOPIC_ORDER]
    try:
        idx = lowered.index(topic.lower())
    except ValueError:
        return None
    return TOPIC_ORDER[idx + 1] if idx + 1 < len(TOPIC_ORDER) else None


def build_topic_mastery(
    active_topic: str,
    topic_stats: Dict[str, TopicStat],
    roadmap: Sequence[RoadmapTopicState],
    bank: Sequence[ProblemBankEntry],
) -> TopicMasteryTrack:
    stat = topic_stats.get(active_topic) or TopicStat(topic=active_topic)
    success_rate = round_half_up(stat.solved / stat.attempts * 100) if stat.attempts else 0
    progress = _roadmap_progress_for(active_topic, roadmap)
    is_weak = success_rate < 50 or stat.attempts < 3

    pool = sorted(
        (p for p in bank if p.topic.lower() == active_topic.lower()),
        key=lambda p: (p.rating, p.name),
    )
    problems = [_to_problem(p) for p in pool[:5]]

    if not problems:
        tag_key = active_topic.lower().replace(" ", "+")
        for i in range(3):
            r = 800 + i * 100
            problems.append(DSAProblem(
                name=f"CF {active_topic} Practice #{i + 1}",
                link=f"https://codeforces.com/problemset?tags={tag_key}&order=BY_RATING_ASC",
                topic=active_topic,
                rating=r,
                difficulty=rating_to_difficulty(r),
            ))

    return TopicMasteryTrack(
        current_topic=active_topic,
        roadmap_progress=progress,
        success_rate=success_rate,
        pattern_focus=pattern_focus(active_topic, is_weak),
        problems=problems,
        next_topic_suggestion=next_topic(active_topic) if progress >= NEXT_TOPIC_PROGRESS else None,
    )


def build_dsa_tracks(
    cf: Optional[CodeforcesSnapshot],
    cf_handle: Optional[str],
    topic_stats: Dict[str, TopicStat],
    roadmap: Sequence[RoadmapTopicState],
    bank: Sequence[ProblemBankEntry],
) -> DSASuggestionResult:
    if not (cf_handle or "").strip() or cf is None or not cf.rating:
        return DSASuggestionResult(error=MISSING_CF_MESSAGE)

    active = find_active_topic(roadmap, topic_stats)
    return DSASuggestionResult(
        rating_progression=build_rating_progression(cf, bank),
        topic_mastery=build_topic_mastery(active, topic_stats, roadmap, bank),
    )
