from datetime import date
from typing import List, Optional

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    username: str
    batch: Optional[str] = None
    overall_score: int
    dsa_score: int = 0
    development_score: int = 0
    consistency_score: int = 0
    problems_solved: int = 0
    codeforces_rating: int = 0
    leetcode_solved: int = 0


class UserRankResponse(BaseModel):
    user_id: int
    rank: int
    overall_score: int
    batch: Optional[str] = None


class RankHistoryEntry(BaseModel):
    date: date
    rank: int
    overall_score: int


class RankHistoryResponse(BaseModel):
    user_id: int
    history: List[RankHistoryEntry]
