"""Environment-driven settings."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    suggestion_step_minutes: int = Field(default=15, gt=0)
    min_suggestions: int = Field(default=5, ge=0)
    suggestion_max_days: int = Field(default=7, ge=0)
    maintenance_tick_seconds: float = Field(default=60, gt=0)
    maintenance_scheduler_enabled: bool = True
    utilization_days: int = Field(default=7, gt=0)
    operational_minutes_per_day: int = Field(default=12 * 60, gt=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        load_dotenv()
        return cls(
            suggestion_step_minutes=int(os.getenv("SUGGESTION_STEP_MINUTES", "15")),
            min_suggestions=int(os.getenv("MIN_SUGGESTIONS", "5")),
            suggestion_max_days=int(os.getenv("SUGGESTION_MAX_DAYS", "7")),
            maintenance_tick_seconds=float(os.getenv("MAINTENANCE_TICK_SECONDS", "60")),
            maintenance_scheduler_enabled=_env_flag("MAINTENANCE_SCHEDULER_ENABLED", "true"),
            utilization_days=int(os.getenv("UTILIZATION_DAYS", "7")),
            operational_minutes_per_day=int(os.getenv("OPERATIONAL_MINUTES_PER_DAY", "720")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
