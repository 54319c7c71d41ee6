from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

RecommendationType = Literal["dsa", "webdev", "opensource"]
Difficulty = Literal["Easy", "Medium", "Hard"]


class RecommendationContent(BaseModel):
    title: str
    description: str = ""
    link: str = ""
    topic: str = ""
    difficulty: Difficulty = "Easy"


class Recommendation(BaseModel):
    type: RecommendationType
    content: RecommendationContent

    model_config = ConfigDict(from_attributes=True)


class RecommendationSet(BaseModel):
    dsa_problems: List[Recommendation] = []
    web_projects: List[Recommendation] = []
    open_source_items: List[Recommendation] = []

    def flatten(self) -> List[Recommendation]:
        return [*self.dsa_problems, *self.web_projects, *self.open_source_items]


class RecommendationsResponse(BaseModel):
    user_id: int
    recommendations: List[Recommendation]
    generated_at: Optional[datetime] = None


# ---------- DSA TRACKS ----------

class DSAProblem(BaseModel):
    name: str
    link: str
    topic: str
    rating: int
    difficulty: Difficulty


class RatingProgressionTrack(BaseModel):
    section: Literal["Rating Progression"] = "Rating Progression"
    target_range: str
    cf_handle: str
    current_rating: int
    rank: str
    problems_solved: int
    problems: List[DSAProblem]


class TopicMasteryTrack(BaseModel):
    section: Literal["Topic Mastery"] = "Topic Mastery"
    current_topic: str
    roadmap_progress: float
    success_rate: int
    pattern_focus: List[str]
    problems: List[DSAProblem]
    next_topic_suggestion: Optional[str] = None


class DSASuggestionResult(BaseModel):
    rating_progression: Optional[RatingProgressionTrack] = None
    topic_mastery: Optional[TopicMasteryTrack] = None
    error: Optional[str] = None
