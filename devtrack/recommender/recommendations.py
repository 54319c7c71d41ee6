# recommender/recommendations.py

import logging
from typing import Iterable, List, Optional, Sequence

from devtrack.data.roadmap import RoadmapTopicState
from devtrack.preprocess.problem_bank import ProblemBankEntry
from devtrack.schemas.profile import SkillProfile
from devtrack.schemas.recommendation import Recommendation, RecommendationContent, RecommendationSet

logger = logging.getLogger(__name__)

DEFAULT_RATING = 800
BAND_STEPS = (100, 400)
WEAK_CAP = 3

STARTER_PROBLEMS = (
    ProblemBankEntry("Watermelon", "https://codeforces.com/problemset/problem/4/A", "Math", 800, "Easy"),
    ProblemBankEntry("Way Too Long Words", "https://codeforces.com/problemset/problem/71/A", "Strings", 800, "Easy"),
    ProblemBankEntry("Team", "https://codeforces.com/problemset/problem/231/A", "Implementation", 800, "Easy"),
)

# ---------- WEB PROJECT TABLE ----------
# keyword -> (title, description, link, topic, difficulty); checked in this order per roadmap topic
WEB_PROJECTS = (
    ("dom", ("Todo App", "Master DOM manipulation.", "https://github.com/topics/todo-app", "DOM", "Medium")),
    ("fetch", ("Weather App", "Master APIs.", "https://github.com/topics/weather-app", "Fetch API", "Medium")),
    ("react", ("Blog App", "Master State and Props.", "https://github.com/topics/react-blog", "React", "Hard")),
    ("hooks", ("Dashboard Clone", "Master custom hooks.", "https://github.com/topics/react-dashboard", "React Hooks", "Hard")),
)

# ---------- OPEN SOURCE TABLE ----------
OS_REPO_THRESHOLD = 5
OS_CF_THRESHOLD = 1600

FIRST_CONTRIBUTIONS = RecommendationContent(
    title="First Contributions",
    description="Great place for beginners to make PRs.",
    link="https://github.com/firstcontributions/first-contributions",
    topic="Git",
    difficulty="Easy",
)
GOOD_FIRST_ISSUES = RecommendationContent(
    title="Good First Issues",
    description="Pick a labelled issue in an active project and ship a real fix.",
    link="https://goodfirstissue.dev",
    topic="Open Source",
    difficulty="Medium",
)
THE_ALGORITHMS = RecommendationContent(
    title="TheAlgorithms/Python",
    description="Contribute algorithm implementations backed by your contest experience.",
    link="https://github.com/TheAlgorithms/Python",
    topic="Algorithms",
    difficulty="Medium",
)


def _by_name(entries: Iterable[ProblemBankEntry]) -> List[ProblemBankEntry]:
    return sorted(entries, key=lambda p: p.name)


def candidate_pool(bank: Sequence[ProblemBankEntry], rating: int) -> List[ProblemBankEntry]:
    """Widen the rating band until something matches. Empty only if the bank is empty."""
    for band in BAND_STEPS:
        pool = [p for p in bank if abs(p.rating - rating) <= band]
        if pool:
            return _by_name(pool)
    return _by_name(bank)


def select_dsa_problems(
    bank: Sequence[ProblemBankEntry],
    rating: Optional[int],
    weak_topics: Sequence[str],
    limit: int = 3,
) -> List[ProblemBankEntry]:
    rating = rating or DEFAULT_RATING
    pool = candidate_pool(bank, rating)
    if not pool:
        logger.info("Problem bank empty, using starter problems")
        return list(STARTER_PROBLEMS)

    weak = set(weak_topics)
    picked = [p for p in pool if p.topic in weak][:min(WEAK_CAP, limit)]
    for p in pool:
        if len(picked) >= limit:
            break
        if p not in picked:
            picked.append(p)
    return picked


def _dsa_recommendation(p: ProblemBankEntry) -> Recommendation:
    return Recommendation(
        type="dsa",
        content=RecommendationContent(
            title=p.name,
            description=f"Targeted practice for {p.topic} at rating {p.rating}.",
            link=p.link,
            topic=p.topic,
            difficulty=p.difficulty,
        ),
    )


def select_web_projects(roadmap: Sequence[RoadmapTopicState]) -> List[Recommendation]:
    """One project for the first started, incomplete roadmap topic that matches a keyword."""
    for state in roadmap:
        if state.completed or state.progress <= 0:
            continue
        haystack = f"{state.topic_id} {state.title}".lower()
        for keyword, (title, description, link, topic, difficulty) in WEB_PROJECTS:
            if keyword in haystack:
                return [Recommendation(
                    type="webdev",
                    content=RecommendationContent(
                        title=title, description=description, link=link, topic=topic, difficulty=difficulty,
                    ),
                )]
    return []


def select_open_source(public_repos: int, cf_rating: int) -> List[Recommendation]:
    items = [FIRST_CONTRIBUTIONS if public_repos < OS_REPO_THRESHOLD else GOOD_FIRST_ISSUES]
    if cf_rating >= OS_CF_THRESHOLD:
        items.append(THE_ALGORITHMS)
    return [Recommendation(type="opensource", content=c) for c in items]


def select_recommendations(
    profile: SkillProfile,
    bank: Sequence[ProblemBankEntry],
    roadmap: Sequence[RoadmapTopicState],
    weak_topics: Optional[Sequence[str]] = None,
    limit: int = 3,
) -> RecommendationSet:
    """Deterministic: identical inputs always give identical output, in the same order."""
    weak = profile.weak_topics if weak_topics is None else weak_topics
    problems = select_dsa_problems(bank, profile.cf_rating, weak, limit=limit)
    return RecommendationSet(
        dsa_problems=[_dsa_recommendation(p) for p in problems],
        web_projects=select_web_projects(roadmap),
        open_source_items=select_open_source(profile.gh_public_repos, profile.cf_rating),
    )
