"""Environment driven settings for the scheduling service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .domain import InvalidScheduleInputError


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration, read from the environment and ``.env``."""

    catalog_path: Optional[Path] = None
    lookahead_weeks: int = 52
    buffer_days: int = 1
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def _int_setting(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise InvalidScheduleInputError(f"{name} must be an integer, got {raw!r}", field=name) from exc
    if value < 0:
        raise InvalidScheduleInputError(f"{name} cannot be negative", field=name)
    return value


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)
    catalog = os.getenv("PUMP_SCHEDULE_CATALOG", "").strip()
    log_file = os.getenv("LOG_FILE", "").strip()
    return Settings(
        catalog_path=Path(catalog) if catalog else None,
        lookahead_weeks=_int_setting("PUMP_SCHEDULE_LOOKAHEAD_WEEKS", 52),
        buffer_days=_int_setting("PUMP_SCHEDULE_BUFFER_DAYS", 1),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_file=Path(log_file) if log_file else None,
    )


__all__ = ["Settings", "load_settings"]
