"""
TaskFlow Assistant — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from taskflow/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Storage: SQLite file backing the key-value store
    DATABASE_PATH: str = "data/taskflow.db"

    # Assistant
    BOT_NAME: str = "Chinni"
    DEFAULT_REMINDER_TIME: str = "09:00"
    NAVIGATION_DELAY_MS: int = 200

    # Calendar arithmetic: 0 = Monday ... 6 = Sunday
    WEEK_START: int = 0

    # Analytics
    TREND_WINDOW_DAYS: int = 30

    LOG_LEVEL: str = "INFO"

    @field_validator("WEEK_START", mode="before")
    @classmethod
    def parse_week_start(cls, v: str | int) -> int:
        day = int(v)
        if not 0 <= day <= 6:
            raise ValueError(f"WEEK_START must be 0-6, got {day}")
        return day

    @field_validator("DEFAULT_REMINDER_TIME")
    @classmethod
    def check_hhmm(cls, v: str) -> str:
        if not re.match(r"^([01]\d|2[0-3]):[0-5]\d$", v):
            raise ValueError(f"DEFAULT_REMINDER_TIME must be HH:MM, got {v!r}")
        return v

    @field_validator("NAVIGATION_DELAY_MS", "TREND_WINDOW_DAYS", mode="before")
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)


def _load_settings() -> Settings:
    """Load settings from environment, falling back to defaults."""
    return Settings(
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/taskflow.db"),
        BOT_NAME=os.getenv("BOT_NAME", "Chinni"),
        DEFAULT_REMINDER_TIME=os.getenv("DEFAULT_REMINDER_TIME", "09:00"),
        NAVIGATION_DELAY_MS=os.getenv("NAVIGATION_DELAY_MS", "200"),
        WEEK_START=os.getenv("WEEK_START", "0"),
        TREND_WINDOW_DAYS=os.getenv("TREND_WINDOW_DAYS", "30"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


def configure_logging() -> None:
    """Apply the project-wide log format at the configured level."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


# Singleton, imported by all other modules as:
#   from taskflow.config import settings
settings = _load_settings()
