"""
Runtime configuration for DebugQuest.

Settings come from environment variables, optionally loaded from a .env file
at the project root.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from debugquest.errors import ValidationError

PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_DATA_DIR = Path.home() / ".debugquest"
DEFAULT_DB_PATH = DEFAULT_DATA_DIR / "debugquest.db"
DEFAULT_LEADERBOARD_LIMIT = 50

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class RepeatCompletionPolicy(str, Enum):
    """How a second completion of an already-completed lesson is scored."""
    FIRST_ONLY = "first_only"  # only the first completion earns points
    EVERY = "every"            # every completion re-scores the lesson


class Settings(BaseModel):
    db_path: Path = DEFAULT_DB_PATH
    repeat_completions: RepeatCompletionPolicy = RepeatCompletionPolicy.FIRST_ONLY
    leaderboard_limit: int = Field(DEFAULT_LEADERBOARD_LIMIT, ge=1)
    streak_window_days: int = Field(1, ge=0)
    log_level: str = "INFO"


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional .env path (default: PROJECT_ROOT/.env)

    Raises:
        ValidationError: If a variable holds an invalid value
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    values = {}
    env_map = {
        "db_path": "DEBUGQUEST_DB_PATH",
        "repeat_completions": "DEBUGQUEST_REPEAT_COMPLETIONS",
        "leaderboard_limit": "DEBUGQUEST_LEADERBOARD_LIMIT",
        "streak_window_days": "DEBUGQUEST_STREAK_WINDOW_DAYS",
        "log_level": "DEBUGQUEST_LOG_LEVEL",
    }
    for field_name, var in env_map.items():
        raw = os.environ.get(var)
        if raw is not None and raw.strip():
            values[field_name] = raw.strip()

    try:
        settings = Settings(**values)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid configuration: {e}") from e

    settings.log_level = settings.log_level.upper()
    if not isinstance(logging.getLevelName(settings.log_level), int):
        raise ValidationError(f"Invalid log level: {settings.log_level}")
    return settings


def setup_logging(level: str = "INFO"):
    """Configure root logging the same way for every entry point."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
