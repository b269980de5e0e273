"""Configuration management for Pomoplan."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .core.policy import CRAM_DAILY_MINUTES, DEFAULT_DAILY_MINUTES, PolicyConfig

logger = logging.getLogger(__name__)

PLANNER_HOME = Path(os.environ.get("PLANNER_HOME", Path.home() / ".pomoplan"))
CONFIG_FILE = PLANNER_HOME / "pomoplan.conf"
DEFAULT_STORE = PLANNER_HOME / "tasks.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Pomoplan configuration."""

    store_path: str = ""
    api_url: str = ""
    api_token: str = ""
    pomodoro_minutes: int = 25
    break_minutes: int = 5
    max_daily_minutes: int | None = None  # None = 240, or 360 when cramming
    cram: bool = False
    replan_respects_unaffected: bool = False

    def policy(self, cram: bool | None = None) -> PolicyConfig:
        """Build the scheduling policy, optionally forcing cram mode."""
        cram = self.cram if cram is None else cram
        daily = self.max_daily_minutes
        if daily is None:
            daily = CRAM_DAILY_MINUTES if cram else DEFAULT_DAILY_MINUTES
        return PolicyConfig(
            pomodoro_minutes=self.pomodoro_minutes,
            break_minutes=self.break_minutes,
            max_daily_minutes=daily,
            cram=cram,
        )


def _parse_int(key: str, value: str, default: int | None) -> int | None:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring {key.upper()}={value!r}: not a whole number")
        return default


def _strip_value(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    if value[:1] in ('"', "'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from pomoplan.conf."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        match key:
            case "store_path":
                config.store_path = value
            case "api_url":
                config.api_url = value.rstrip("/")
            case "api_token":
                config.api_token = value
            case "pomodoro_minutes":
                config.pomodoro_minutes = _parse_int(key, value, config.pomodoro_minutes)
            case "break_minutes":
                config.break_minutes = _parse_int(key, value, config.break_minutes)
            case "max_daily_minutes":
                config.max_daily_minutes = _parse_int(key, value, config.max_daily_minutes)
            case "cram":
                config.cram = value.lower() in _TRUE_VALUES
            case "replan_respects_unaffected":
                config.replan_respects_unaffected = value.lower() in _TRUE_VALUES

    return config
