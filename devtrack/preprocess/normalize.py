from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Set

# Sources in the activity heatmap. LeetCode shares the "cf" band.
SOURCES = ("devtrack", "cf", "gh")

TOPIC_ALIASES = {
    "dp": "DP",
    "dynamic programming": "DP",
    "greedy algorithms": "Greedy",
    "programming basics": "Implementation",
    "graphs": "Graphs",
    "dfs and similar": "Graphs",
    "shortest paths": "Graphs",
    "dsu": "Graphs",
    "graph matchings": "Graphs",
    "flows": "Graphs",
    "trees": "Trees",
    "math": "Math",
    "combinatorics": "Math",
    "probabilities": "Math",
    "number theory": "Number Theory",
    "chinese remainder theorem": "Number Theory",
    "greedy": "Greedy",
    "constructive algorithms": "Greedy",
    "implementation": "Implementation",
    "brute force": "Implementation",
    "strings": "Strings",
    "hashing": "Strings",
    "string suffix structures": "Strings",
    "sortings": "Sorting",
    "binary search": "Binary Search",
    "ternary search": "Binary Search",
    "two pointers": "Two Pointers",
    "bitmasks": "Bit Manipulation",
    "geometry": "Geometry",
    "data structures": "Data Structures",
    "divide and conquer": "Recursion",
    "games": "Games",
    "interactive": "Interactive",
}


def normalize_topic(tag: Optional[str]) -> str:
    """Map a platform tag (e.g. a Codeforces problem tag) to a canonical topic name."""
    if not tag or not tag.strip():
        return "General"
    key = tag.strip().lower()
    return TOPIC_ALIASES.get(key, key.title())


@dataclass
class StudySessionEntry:
    date: date
    topic: str
    category: str = "dsa"
    duration_minutes: int = 0
    difficulty: Optional[str] = None


@dataclass
class DailyActivity:
    minutes_studied: int = 0
    tasks_completed: int = 0
    topics: Set[str] = field(default_factory=set)


@dataclass
class UnifiedActivityRecord:
    date: date
    devtrack: bool = False
    cf: bool = False
    gh: bool = False
    minutes_studied: int = 0
    topics: Set[str] = field(default_factory=set)

    @property
    def sources(self) -> Dict[str, bool]:
        return {"devtrack": self.devtrack, "cf": self.cf, "gh": self.gh}


ActivityMap = Dict[date, UnifiedActivityRecord]


def build_daily_history(sessions: Iterable[StudySessionEntry]) -> Dict[date, DailyActivity]:
    history: Dict[date, DailyActivity] = {}
    for s in sessions:
        day = history.setdefault(s.date, DailyActivity())
        day.minutes_studied += max(0, s.duration_minutes)
        day.tasks_completed += 1
        if s.topic:
            day.topics.add(s.topic)
    return history


def add_source_dates(records: ActivityMap, dates: Iterable[date], source: str) -> ActivityMap:
    """
    Fold one source's date set into the activity map in place.

    Re-adding a (date, source) pair only sets the flag again, so applying
    the same dates twice leaves the map unchanged.
    """
    if source not in SOURCES:
        raise ValueError(f"unknown activity source: {source}")
    for d in dates:
        record = records.get(d)
        if record is None:
            record = records[d] = UnifiedActivityRecord(date=d)
        setattr(record, source, True)
    return records


def merge_activity(
    devtrack_history: Optional[Mapping[date, DailyActivity]] = None,
    cf_dates: Iterable[date] = (),
    gh_dates: Iterable[date] = (),
    lc_dates: Iterable[date] = (),
) -> ActivityMap:
    """Union every source into one record per date. Dates with no activity are absent."""
    records: ActivityMap = {}

    for d, day in (devtrack_history or {}).items():
        record = records.setdefault(d, UnifiedActivityRecord(date=d))
        record.devtrack = True
        record.minutes_studied = day.minutes_studied
        record.topics = set(day.topics)

    add_source_dates(records, cf_dates, "cf")
    add_source_dates(records, lc_dates, "cf")
    add_source_dates(records, gh_dates, "gh")
    return records


def merge_into(existing: ActivityMap, other: ActivityMap) -> ActivityMap:
    """Union two activity maps. Flags OR together, minutes keep the larger value."""
    merged: ActivityMap = {
        d: UnifiedActivityRecord(
            date=d, devtrack=r.devtrack, cf=r.cf, gh=r.gh,
            minutes_studied=r.minutes_studied, topics=set(r.topics),
        )
        for d, r in existing.items()
    }
    for d, r in other.items():
        target = merged.setdefault(d, UnifiedActivityRecord(date=d))
        target.devtrack = target.devtrack or r.devtrack
        target.cf = target.cf or r.cf
        target.gh = target.gh or r.gh
        target.minutes_studied = max(target.minutes_studied, r.minutes_studied)
        target.topics |= r.topics
    return merged


def sorted_activity(records: ActivityMap) -> List[UnifiedActivityRecord]:
    return [records[d] for d in sorted(records)]
