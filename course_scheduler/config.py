"""Runtime settings and logging setup, read from the environment."""

from __future__ import annotations

import logging
import os
import sys

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


class Settings(BaseModel):
    live_check_delay_ms: int = Field(default=300, ge=0)
    fail_open: bool = False
    upcoming_limit: int = Field(default=10, gt=0)
    seed: bool = False
    log_level: str = "INFO"

    @property
    def live_check_delay(self) -> float:
        return self.live_check_delay_ms / 1000

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ``SCHEDULER_*`` variables, keeping defaults for unset ones."""
        values: dict = {
            "fail_open": _env_flag("SCHEDULER_FAIL_OPEN"),
            "seed": _env_flag("SCHEDULER_SEED"),
        }
        if "SCHEDULER_LIVE_CHECK_DELAY_MS" in os.environ:
            values["live_check_delay_ms"] = os.environ["SCHEDULER_LIVE_CHECK_DELAY_MS"]
        if "SCHEDULER_UPCOMING_LIMIT" in os.environ:
            values["upcoming_limit"] = os.environ["SCHEDULER_UPCOMING_LIMIT"]
        if "SCHEDULER_LOG_LEVEL" in os.environ:
            values["log_level"] = os.environ["SCHEDULER_LOG_LEVEL"].upper()
        return cls(**values)


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install one stderr handler on the root logger; calling again only changes the level."""
    root = logging.getLogger()

    if getattr(root, "_course_scheduler_logging_configured", False):
        root.setLevel(level)
        return

    root.setLevel(level)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root.addHandler(handler)
    setattr(root, "_course_scheduler_logging_configured", True)
