"""
Unit tests for settings, logging setup and engine construction.

Run with: pytest tests/test_config.py -v
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from speechcoach.config import Settings, load_settings
from speechcoach.engine import AnalysisEngine
from speechcoach.errors import ConfigError
from speechcoach.logger import configure_logging, get_logger
from speechcoach.rubrics import DEFAULT_RUBRICS
from speechcoach.schemas import Goal

ENV_VARS = (
    "LOG_LEVEL",
    "HOST",
    "PORT",
    "SPEECHCOACH_RUBRICS_PATH",
    "SPEECHCOACH_VOCABULARY_PATH",
    "SPEECHCOACH_MAX_INSIGHTS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadSettings:
    """Test reading settings from the environment."""

    def test_defaults(self, clean_env):
        """Without environment variables the defaults apply."""
        settings = load_settings()

        assert settings == Settings()
        assert settings.port == 8000
        assert settings.rubrics_path is None

    def test_environment_overrides(self, clean_env):
        """Every setting can be overridden."""
        clean_env.setenv("LOG_LEVEL", "DEBUG")
        clean_env.setenv("PORT", "9001")
        clean_env.setenv("SPEECHCOACH_RUBRICS_PATH", "/etc/speechcoach/rubrics.json")
        clean_env.setenv("SPEECHCOACH_MAX_INSIGHTS", "2")

        settings = load_settings()

        assert settings.log_level == "DEBUG"
        assert settings.port == 9001
        assert settings.rubrics_path == "/etc/speechcoach/rubrics.json"
        assert settings.max_insights == 2

    def test_malformed_port(self, clean_env):
        """Non-numeric ports fail fast."""
        clean_env.setenv("PORT", "eighty")

        with pytest.raises(ConfigError, match="PORT"):
            load_settings()

    def test_insight_cap_must_be_positive(self, clean_env):
        """A cap of zero insights is rejected."""
        clean_env.setenv("SPEECHCOACH_MAX_INSIGHTS", "0")

        with pytest.raises(ConfigError):
            load_settings()


class TestEngineFromSettings:
    """Test building the engine from settings."""

    def test_default_engine(self):
        """Default settings use the built-in vocabulary and rubrics."""
        engine = AnalysisEngine.from_settings(Settings())

        assert engine.vocabulary.version == "1.0.0"
        assert engine.rubric_for(Goal.CLARITY) == DEFAULT_RUBRICS[Goal.CLARITY]

    def test_custom_files(self, tmp_path):
        """Vocabulary and rubric files replace the defaults."""
        vocabulary_path = tmp_path / "fillers.txt"
        vocabulary_path.write_text("um\nerm\n", encoding="utf-8")
        rubrics_path = tmp_path / "rubrics.json"
        rubrics_path.write_text(json.dumps({
            "fillers": {"criteria": [{"name": "filler_control", "weight": 1.0}]}
        }), encoding="utf-8")

        engine = AnalysisEngine.from_settings(Settings(
            vocabulary_path=str(vocabulary_path),
            rubrics_path=str(rubrics_path),
            max_insights=1
        ))
        analysis = engine.analyze("Erm, well, um.", Goal.FILLERS)

        assert [o.filler_id for o in analysis.occurrences] == ["erm", "um"]
        assert list(analysis.score.criterion_breakdown) == ["filler_control"]
        assert len(engine.weekly_report([], datetime(2026, 3, 12, tzinfo=timezone.utc)).insights) == 1

    def test_bad_vocabulary_file_fails_fast(self, tmp_path):
        """A duplicate entry stops engine construction."""
        vocabulary_path = tmp_path / "fillers.txt"
        vocabulary_path.write_text("um\nUM\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            AnalysisEngine.from_settings(Settings(vocabulary_path=str(vocabulary_path)))


class TestLogging:
    """Test logging configuration."""

    def test_explicit_level_wins(self, monkeypatch):
        """An explicit level overrides LOG_LEVEL."""
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        assert configure_logging("debug") == logging.DEBUG
        assert logging.getLogger().level == logging.DEBUG

    def test_level_from_environment(self, monkeypatch):
        """LOG_LEVEL applies when no level is passed."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        assert configure_logging() == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        """Unrecognized level names resolve to INFO."""
        assert configure_logging("chatty") == logging.INFO

    def test_get_logger_returns_named_logger(self):
        """Loggers are named after their module."""
        assert get_logger("speechcoach.test").name == "speechcoach.test"
