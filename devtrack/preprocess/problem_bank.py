import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Tuple

import pandas as pd

logger = logging.getLogger(__name__)

BANK_PATH = Path(__file__).resolve().parent.parent / "data" / "problem_bank.csv"
COLUMNS = ["name", "link", "topic", "rating", "difficulty"]


@dataclass(frozen=True)
class ProblemBankEntry:
    name: str
    link: str
    topic: str
    rating: int
    difficulty: str


def rating_to_difficulty(rating: int) -> str:
    if rating >= 1500:
        return "Hard"
    if rating >= 1200:
        return "Medium"
    return "Easy"


def load_problem_bank_df(path=BANK_PATH) -> pd.DataFrame:
    df = pd.read_csv(path)

    missing = [c for c in ("name", "link", "topic", "rating") if c not in df.columns]
    if missing:
        raise ValueError(f"problem bank is missing columns: {missing}")

    df = df.dropna(subset=["name", "link", "topic", "rating"]).copy()
    df["rating"] = df["rating"].astype(int)
    if "difficulty" not in df.columns:
        df["difficulty"] = None
    df["difficulty"] = [
        d if isinstance(d, str) and d else rating_to_difficulty(r)
        for d, r in zip(df["difficulty"], df["rating"])
    ]
    df = df.drop_duplicates(subset=["name"]).sort_values("name", kind="stable")
    return df[COLUMNS].reset_index(drop=True)


@lru_cache(maxsize=None)
def load_problem_bank(path=BANK_PATH) -> Tuple[ProblemBankEntry, ...]:
    """Read-only, process-wide cached problem bank."""
    df = load_problem_bank_df(path)
    logger.info("Loaded %d problems from %s", len(df), Path(path).name)
    return tuple(
        ProblemBankEntry(
            name=str(row.name),
            link=str(row.link),
            topic=str(row.topic),
            rating=int(row.rating),
            difficulty=str(row.difficulty),
        )
        for row in df.itertuples(index=False)
    )
