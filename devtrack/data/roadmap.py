from dataclasses import dataclass, replace
from typing import Iterable, List, NamedTuple, Optional

# ---------- ROADMAP CATALOG ----------
# (topic_id, title, category). Order is the display and unlock order.

ROADMAP_CATALOG = [
    ("dsa-basics", "Programming Basics", "dsa"),
    ("dsa-arrays", "Arrays", "dsa"),
    ("dsa-strings", "Strings", "dsa"),
    ("dsa-2ptr", "Two Pointers", "dsa"),
    ("dsa-sliding", "Sliding Window", "dsa"),
    ("dsa-bsearch", "Binary Search", "dsa"),
    ("dsa-stack", "Stack", "dsa"),
    ("dsa-queue", "Queue", "dsa"),
    ("dsa-ll", "Linked List", "dsa"),
    ("dsa-hash", "Hashing", "dsa"),
    ("dsa-trees", "Trees", "dsa"),
    ("dsa-graphs", "Graphs", "dsa"),
    ("dsa-dp", "Dynamic Programming", "dsa"),
    ("dsa-greedy", "Greedy Algorithms", "dsa"),
    ("dsa-backtrack", "Backtracking", "dsa"),
    ("dsa-bits", "Bit Manipulation", "dsa"),
    ("dsa-trie", "Tries", "dsa"),
    ("web-html", "HTML Advanced", "webdev"),
    ("web-css", "CSS Advanced", "webdev"),
    ("web-js-foundations", "JavaScript Foundations", "webdev"),
    ("web-js-core", "JavaScript Core", "webdev"),
    ("web-dom", "DOM Mastery", "webdev"),
    ("web-async-fetch", "Async Programming & Fetch", "webdev"),
    ("web-react-foundation", "React Foundation", "webdev"),
    ("web-react-hooks", "React Hooks & Advanced Patterns", "webdev"),
    ("web-nodejs", "Node.js", "webdev"),
    ("web-express", "Express.js", "webdev"),
    ("web-databases", "Databases", "webdev"),
    ("web-auth", "Authentication", "webdev"),
    ("web-deploy", "Deployment", "webdev"),
]

CATEGORIES = ("dsa", "webdev")


@dataclass(frozen=True)
class RoadmapTopicState:
    topic_id: str
    title: str
    category: str
    progress: float = 0.0
    completed: bool = False

    @property
    def in_progress(self) -> bool:
        return not self.completed and 0 < self.progress < 100


class RoadmapCompletion(NamedTuple):
    completed: int
    total: int

    @property
    def ratio(self) -> float:
        return self.completed / self.total if self.total else 0.0


def default_roadmap() -> List[RoadmapTopicState]:
    return [RoadmapTopicState(topic_id=t, title=title, category=c) for t, title, c in ROADMAP_CATALOG]


def get_topic(topic_id: str) -> Optional[RoadmapTopicState]:
    for state in default_roadmap():
        if state.topic_id == topic_id:
            return state
    return None


def overlay_progress(rows: Iterable) -> List[RoadmapTopicState]:
    """
    Overlay persisted progress rows (anything with topic_id, progress and
    completed attributes) on the static catalog. Unknown ids are ignored.
    """
    by_id = {r.topic_id: r for r in rows}
    states = []
    for state in default_roadmap():
        row = by_id.get(state.topic_id)
        if row is not None:
            progress = max(0.0, min(100.0, float(row.progress or 0)))
            completed = bool(row.completed) or progress >= 100
            state = replace(state, progress=100.0 if completed else progress, completed=completed)
        states.append(state)
    return states


def roadmap_completion(states: Iterable[RoadmapTopicState]) -> RoadmapCompletion:
    states = list(states)
    return RoadmapCompletion(completed=sum(1 for s in states if s.completed), total=len(states))
