"""
Runtime configuration from environment variables, with defaults.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_EXHAUSTIVE_LIMIT = 20
DEFAULT_SWAP_ITERATIONS = 200
DEFAULT_SKILL_SPREAD_WARNING = 5
DEFAULT_LOG_LEVEL = "INFO"

LOG_FMT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


@dataclass(frozen=True)
class Settings:
    """
    exhaustive_limit: largest two-team roster searched exhaustively.
    swap_iterations: cap on hill-climbing passes for more than two teams.
    skill_spread_warning: total-skill spread above which a warning is emitted.
    """
    exhaustive_limit: int = DEFAULT_EXHAUSTIVE_LIMIT
    swap_iterations: int = DEFAULT_SWAP_ITERATIONS
    skill_spread_warning: int = DEFAULT_SKILL_SPREAD_WARNING
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            exhaustive_limit=_env_int("TEAMBALANCE_EXHAUSTIVE_LIMIT", DEFAULT_EXHAUSTIVE_LIMIT),
            swap_iterations=_env_int("TEAMBALANCE_SWAP_ITERATIONS", DEFAULT_SWAP_ITERATIONS),
            skill_spread_warning=_env_int("TEAMBALANCE_SKILL_SPREAD_WARNING", DEFAULT_SKILL_SPREAD_WARNING),
            log_level=os.environ.get("TEAMBALANCE_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL,
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return process settings, read from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def set_settings(settings: Settings | None) -> None:
    """Override process settings. None re-reads the environment on next use."""
    global _settings
    _settings = settings


def configure_logging(level: str | None = None) -> None:
    """Attach a console handler to the package logger."""
    lgr = logging.getLogger("teambalance")
    lgr.setLevel(level or get_settings().log_level)
    if not lgr.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FMT))
        lgr.addHandler(handler)
