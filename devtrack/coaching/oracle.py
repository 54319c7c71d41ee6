# coaching/oracle.py

import json
import logging
from typing import Any, Dict, Mapping, Optional, Protocol

import requests
from requests.exceptions import RequestException

from devtrack.core.config import settings
from devtrack.core.errors import CoachingError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are an elite AI Coding Coach analyzing a software engineering student's progress.
Identify their strengths and weaknesses, and prioritize exactly what they need to study next.

Return ONLY a raw JSON object with this exact schema:
{
  "weakTopics": ["Topic 1", "Topic 2"],
  "strongTopics": ["Topic A", "Topic B"],
  "priorityTopics": [
     { "topic": "Topic Name", "reason": "Short reason why", "priority": "High" }
  ],
  "dailyPlan": ["Task 1", "Task 2", "Task 3"],
  "motivationalInsight": "One sentence."
}

Rules:
- priority is one of High, Medium, Low.
- dailyPlan has exactly 3 short, concrete tasks for today.
- Prioritize high-value DSA topics (Graphs, DP, Trees) if Codeforces rating or LeetCode hard count is low.
""".strip()


class CoachingOracle(Protocol):
    def analyze(self, summary: str) -> Mapping[str, Any]:
        ...


class GroqCoachingOracle:
    """OpenAI-compatible chat completion on Groq, asking for a JSON object back."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 url: Optional[str] = None, temperature: float = 0.2):
        self.api_key = api_key or settings.GROQ_API_KEY
        self.model = model or settings.GROQ_MODEL
        self.url = url or settings.GROQ_API_URL
        self.temperature = temperature

    def analyze(self, summary: str) -> Mapping[str, Any]:
        if not self.api_key:
            raise CoachingError("GROQ_API_KEY is not set")

        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": summary},
            ],
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        try:
            response = requests.post(self.url, json=body, headers=headers,
                                     timeout=settings.COACHING_TIMEOUT_SECONDS)
        except RequestException as e:
            raise CoachingError(f"Groq request failed: {e}") from e

        if response.status_code != 200:
            raise CoachingError(f"Groq API error HTTP {response.status_code}: {response.text[:200]}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
            data = json.loads(content)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CoachingError(f"Unusable Groq response: {e}") from e

        if not isinstance(data, dict):
            raise CoachingError("Groq content is not a JSON object")
        return data


class StaticCoachingOracle:
    """Returns a fixed payload (or raises a fixed error). Used offline and in tests."""

    def __init__(self, payload: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.payload = payload
        self.error = error
        self.calls = []

    def analyze(self, summary: str) -> Mapping[str, Any]:
        self.calls.append(summary)
        if self.error is not None:
            raise self.error
        return self.payload or {}


def default_oracle() -> Optional[CoachingOracle]:
    if not settings.GROQ_API_KEY:
        logger.info("GROQ_API_KEY not configured, coaching will use the static fallback")
        return None
    return GroqCoachingOracle()
