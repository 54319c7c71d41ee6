# analysis/weakness_analysis.py

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from devtrack.data.roadmap import RoadmapTopicState
from devtrack.preprocess.normalize import normalize_topic

SOLVED_VERDICTS = {"OK", "AC"}
DEFAULT_RATING = 800
DEFAULT_ACTIVE_TOPIC = "Math"

# ---------- CLASSIFICATION THRESHOLDS ----------
WEAK_RATE = 50.0
STRONG_RATE = 80.0
RATING_PIVOT = 1200


@dataclass
class TopicStat:
    topic: str
    attempts: int = 0
    solved: int = 0
    avg_rating: float = 0.0

    def record(self, verdict: Optional[str], rating: Optional[int] = None) -> None:
        self.attempts += 1
        if verdict not in SOLVED_VERDICTS:
            return
        self.solved += 1
        r = rating if rating and rating > 0 else DEFAULT_RATING
        # online mean over solved attempts only; n is the post-increment count
        n = self.solved
        self.avg_rating = (self.avg_rating * (n - 1) + r) / n

    @property
    def success_rate(self) -> float:
        return self.solved / self.attempts * 100 if self.attempts else 0.0

    def is_strong(self) -> bool:
        return self.success_rate > STRONG_RATE and self.avg_rating > RATING_PIVOT

    def is_weak(self) -> bool:
        rate = self.success_rate
        if rate < WEAK_RATE:
            return True
        return WEAK_RATE <= rate <= STRONG_RATE and self.avg_rating < RATING_PIVOT


def aggregate_topics(attempts: Iterable) -> Dict[str, TopicStat]:
    """
    Group attempts by topic. Accepts anything exposing topic, verdict and
    rating attributes (AttemptRecord, ORM rows) or plain dicts.
    """
    stats: Dict[str, TopicStat] = {}
    for a in attempts:
        if isinstance(a, dict):
            topic, verdict, rating = a.get("topic"), a.get("verdict"), a.get("rating")
        else:
            topic, verdict, rating = a.topic, a.verdict, a.rating
        topic = topic or "General"
        stat = stats.get(topic)
        if stat is None:
            stat = stats[topic] = TopicStat(topic=topic)
        stat.record(verdict, rating)
    return stats


def classify_topics(stats: Dict[str, TopicStat]) -> Tuple[List[str], List[str]]:
    """Returns (weak, strong). Strong is checked first so the lists never overlap."""
    weak, strong = [], []
    for topic, stat in stats.items():
        if stat.attempts == 0:
            continue
        if stat.is_strong():
            strong.append(topic)
        elif stat.is_weak():
            weak.append(topic)
    return weak, strong


def _topic_title(topic_id: str) -> str:
    return topic_id.replace("_", " ").replace("-", " ").title()


def find_active_topic(
    roadmap: Sequence[RoadmapTopicState],
    stats: Dict[str, TopicStat],
) -> str:
    """
    Roadmap topic with the highest in-progress completion wins; otherwise the
    worst-performing attempted topic; otherwise Math.
    """
    best = None
    for state in roadmap:
        if state.in_progress and (best is None or state.progress > best.progress):
            best = state
    if best is not None:
        title = best.title or _topic_title(best.topic_id)
        return normalize_topic(title) if best.category == "dsa" else title

    worst, worst_ratio = None, None
    for topic, stat in stats.items():
        ratio = stat.solved / max(stat.attempts, 1)
        if worst_ratio is None or ratio < worst_ratio:
            worst, worst_ratio = topic, ratio
    return worst or DEFAULT_ACTIVE_TOPIC
