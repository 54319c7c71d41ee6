from typing import Iterable, List, Optional

from devtrack.schemas.leaderboard import LeaderboardEntry


def rank_entries(entries: Iterable[LeaderboardEntry], limit: Optional[int] = None) -> List[LeaderboardEntry]:
    """Sort by overall score (desc), then username, and assign 1-based ranks."""
    ordered = sorted(entries, key=lambda e: (-e.overall_score, e.username))
    if limit is not None:
        ordered = ordered[:limit]
    return [e.model_copy(update={"rank": i + 1}) for i, e in enumerate(ordered)]


def user_rank(score: int, all_scores: Iterable[int]) -> int:
    """1 + the number of users with a strictly higher score; ties share a rank."""
    return 1 + sum(1 for s in all_scores if s > score)
