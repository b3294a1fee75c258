# config.py
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from speechcoach.errors import ConfigError
from speechcoach.insights import MAX_WEEKLY_INSIGHTS

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """
    Deployment settings read from the environment (and a .env file).

    Attributes:
        log_level: Root log level (LOG_LEVEL)
        host: Bind address of the HTTP service (HOST)
        port: Port of the HTTP service (PORT)
        rubrics_path: JSON rubric overrides (SPEECHCOACH_RUBRICS_PATH)
        vocabulary_path: Plain-text filler list (SPEECHCOACH_VOCABULARY_PATH)
        max_insights: Insights per weekly report (SPEECHCOACH_MAX_INSIGHTS)
    """
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    rubrics_path: Optional[str] = None
    vocabulary_path: Optional[str] = None
    max_insights: int = MAX_WEEKLY_INSIGHTS


def _int_env(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got '{raw}'") from e
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def load_settings() -> Settings:
    """
    Read settings from the environment.

    Raises:
        ConfigError: If a numeric setting is malformed or out of range
    """
    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int_env("PORT", 8000, minimum=1),
        rubrics_path=os.getenv("SPEECHCOACH_RUBRICS_PATH") or None,
        vocabulary_path=os.getenv("SPEECHCOACH_VOCABULARY_PATH") or None,
        max_insights=_int_env("SPEECHCOACH_MAX_INSIGHTS", MAX_WEEKLY_INSIGHTS, minimum=1),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
