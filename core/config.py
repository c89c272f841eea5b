# core/config.py
"""
Runtime configuration for the reading tracker.

Values come from environment variables (a local ``.env`` file is honoured).
"""

import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    """Settings shared by the API, the CLI and the core services."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///reading_tracker.db",
        description="Async SQLAlchemy connection URL"
    )

    # Open Library
    open_library_url: str = Field(default="https://openlibrary.org", description="Open Library API base URL")
    covers_url: str = Field(default="https://covers.openlibrary.org", description="Open Library covers base URL")
    open_library_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout per Open Library request attempt, in seconds. Transport failures are retried up to 3 attempts, 1s apart, so one call can take about 3x this plus 2s"
    )

    # Recommendations
    recommender: str = Field(default="openlibrary", description="One of openlibrary, huggingface, static")
    huggingface_api_key: str | None = Field(default=None, description="Hugging Face inference API token")
    huggingface_model: str = Field(default="mistralai/Mistral-7B-Instruct-v0.2", description="Hugging Face model id")

    # Application
    log_level: str = Field(default="INFO", description="Logging level")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the API"
    )


def get_config_from_env() -> Settings:
    """Load settings from environment variables."""
    defaults = Settings()
    cors = os.getenv("CORS_ORIGINS")
    return Settings(
        database_url=os.getenv("DATABASE_URL", defaults.database_url),
        open_library_url=os.getenv("OPEN_LIBRARY_URL", defaults.open_library_url),
        covers_url=os.getenv("COVERS_URL", defaults.covers_url),
        open_library_timeout=float(os.getenv("OPEN_LIBRARY_TIMEOUT", str(defaults.open_library_timeout))),
        recommender=os.getenv("RECOMMENDER", defaults.recommender).lower(),
        huggingface_api_key=os.getenv("HUGGINGFACE_API_KEY"),
        huggingface_model=os.getenv("HUGGINGFACE_MODEL", defaults.huggingface_model),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        cors_origins=[o.strip() for o in cors.split(",") if o.strip()] if cors else defaults.cors_origins,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings are read once per process."""
    return get_config_from_env()
