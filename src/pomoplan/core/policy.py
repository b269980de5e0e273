"""Scheduling policy - immutable parameters for one planning call."""

from dataclasses import dataclass
from datetime import timedelta

# Business window, local wall-clock hours
DAY_START_HOUR = 8
DAY_END_HOUR = 22

HORIZON_DAYS = 14
STEP_MINUTES = 15
DEADLINE_BUFFER = timedelta(hours=2)
MIN_REMAINING_MINUTES = 15

DEFAULT_DAILY_MINUTES = 240
CRAM_DAILY_MINUTES = 360


class InvalidPolicyError(ValueError):
    """Raised when a policy cannot produce a schedule."""

    pass


@dataclass(frozen=True)
class PolicyConfig:
    """Session and budget settings used by the packer."""

    pomodoro_minutes: int = 25
    break_minutes: int = 5
    max_daily_minutes: int = DEFAULT_DAILY_MINUTES
    cram: bool = False

    def validate(self) -> None:
        if self.pomodoro_minutes <= 0:
            raise InvalidPolicyError(
                f"pomodoro_minutes must be positive, got {self.pomodoro_minutes}"
            )
        if self.break_minutes < 0:
            raise InvalidPolicyError(
                f"break_minutes cannot be negative, got {self.break_minutes}"
            )
        if self.max_daily_minutes <= 0:
            raise InvalidPolicyError(
                f"max_daily_minutes must be positive, got {self.max_daily_minutes}"
            )

    def to_dict(self) -> dict:
        return {
            "pomodoroMins": self.pomodoro_minutes,
            "breakMins": self.break_minutes,
            "maxDailyMins": self.max_daily_minutes,
            "cram": self.cram,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PolicyConfig":
        """Create a policy from its wire form. Missing keys fall back to defaults."""
        cram = bool(data.get("cram", False))
        return cls(
            pomodoro_minutes=int(data.get("pomodoroMins", 25)),
            break_minutes=int(data.get("breakMins", 5)),
            max_daily_minutes=int(
                data.get("maxDailyMins")
                or (CRAM_DAILY_MINUTES if cram else DEFAULT_DAILY_MINUTES)
            ),
            cram=cram,
        )


def default_policy(cram: bool = False) -> PolicyConfig:
    """Default 25/5 policy; cram mode raises the daily cap."""
    return PolicyConfig(
        pomodoro_minutes=25,
        break_minutes=5,
        max_daily_minutes=CRAM_DAILY_MINUTES if cram else DEFAULT_DAILY_MINUTES,
        cram=cram,
    )
