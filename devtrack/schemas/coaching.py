from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

Priority = Literal["High", "Medium", "Low"]


class PriorityTopic(BaseModel):
    topic: str
    reason: str = ""
    priority: Priority = "Medium"


class CoachingAnalysis(BaseModel):
    weak_topics: List[str] = []
    strong_topics: List[str] = []
    priority_topics: List[PriorityTopic] = []
    daily_plan: List[str] = []
    motivational_insight: str = ""
    source: Literal["oracle", "fallback"] = "fallback"
    generated_at: Optional[datetime] = None
