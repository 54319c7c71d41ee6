from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import ValidationInfo, field_validator
import json


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "DevTrack"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # JSON list in .env, e.g. ["http://localhost:5173"]
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return json.loads(v) if v.strip() else []
        return v

    # ---------- DATABASE ----------
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "devtrack"
    DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = False

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v, info: ValidationInfo):
        if isinstance(v, str) and v:
            return v
        d = info.data
        return (
            f"postgresql+asyncpg://{d.get('POSTGRES_USER')}:{d.get('POSTGRES_PASSWORD')}"
            f"@{d.get('POSTGRES_SERVER')}:{d.get('POSTGRES_PORT')}/{d.get('POSTGRES_DB')}"
        )

    # ---------- PLATFORM TELEMETRY ----------
    GITHUB_TOKEN: Optional[str] = None
    FETCH_TIMEOUT_SECONDS: float = 12.0
    FETCH_MAX_RETRIES: int = 1
    FETCH_RETRY_DELAY: float = 2.0
    FETCH_DEADLINE_SECONDS: float = 15.0
    SNAPSHOT_STALE_HOURS: int = 24
    CF_SUBMISSION_COUNT: int = 500
    CF_RECENT_DAYS: int = 90

    # ---------- COACHING (Groq, OpenAI-compatible) ----------
    GROQ_API_KEY: Optional[str] = None
    GROQ_API_URL: str = "https://api.groq.com/openai/v1/chat/completions"
    GROQ_MODEL: str = "llama3-70b-8192"
    COACHING_TIMEOUT_SECONDS: float = 20.0
    COACHING_CACHE_MINUTES: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
