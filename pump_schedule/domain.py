"""Core data structures for the pump production scheduling engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Dict, Optional, Tuple, Union

DateLike = Union[date, datetime, str]

MIN_STAGE_DAYS = 0.25


class InvalidScheduleInputError(ValueError):
    """Raised when a pump or configuration value cannot be projected."""

    def __init__(
        self, message: str, *, pump_id: Optional[str] = None, field: str = ""
    ) -> None:
        self.pump_id = pump_id
        self.field = field
        prefix = f"pump {pump_id!r}: " if pump_id else ""
        super().__init__(f"{prefix}{message}")


class Stage(str, Enum):
    """Positions in the pump production pipeline, in workflow order."""

    QUEUE = "QUEUE"
    FABRICATION = "FABRICATION"
    STAGED_FOR_POWDER = "STAGED_FOR_POWDER"
    POWDER_COAT = "POWDER_COAT"
    ASSEMBLY = "ASSEMBLY"
    SHIP = "SHIP"
    CLOSED = "CLOSED"

    @property
    def index(self) -> int:
        return STAGE_SEQUENCE.index(self)

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self is Stage.CLOSED

    def stages_remaining(self) -> int:
        """Number of stages between this one and ``CLOSED``."""

        return len(STAGE_SEQUENCE) - 1 - self.index

    @classmethod
    def parse(cls, value: Union["Stage", str], *, pump_id: Optional[str] = None) -> "Stage":
        """Resolve canonical and legacy stage names to a ``Stage``."""

        if isinstance(value, Stage):
            return value
        if isinstance(value, str):
            key = value.strip()
            try:
                return cls(key.upper())
            except ValueError:
                pass
            legacy = LEGACY_STAGE_NAMES.get(key.upper())
            if legacy is not None:
                return legacy
        raise InvalidScheduleInputError(
            f"unknown stage {value!r}", pump_id=pump_id, field="stage"
        )


STAGE_SEQUENCE: Tuple[Stage, ...] = tuple(Stage)

# Stages that can appear on a projected timeline.
PRODUCTION_STAGES: Tuple[Stage, ...] = (
    Stage.FABRICATION,
    Stage.STAGED_FOR_POWDER,
    Stage.POWDER_COAT,
    Stage.ASSEMBLY,
    Stage.SHIP,
)

INTERNAL_STAGES: Tuple[Stage, ...] = (Stage.FABRICATION, Stage.ASSEMBLY, Stage.SHIP)

STAGE_LABELS: Dict[Stage, str] = {
    Stage.QUEUE: "Queue",
    Stage.FABRICATION: "Fabrication",
    Stage.STAGED_FOR_POWDER: "Staged for Powder",
    Stage.POWDER_COAT: "Powder Coat",
    Stage.ASSEMBLY: "Assembly",
    Stage.SHIP: "Ship",
    Stage.CLOSED: "Closed",
}

# Display vocabulary used by older boards and catalog exports.
LEGACY_STAGE_NAMES: Dict[str, Stage] = {
    "NOT STARTED": Stage.QUEUE,
    "POWDER COAT": Stage.POWDER_COAT,
    "STAGED FOR POWDER": Stage.STAGED_FOR_POWDER,
    "TESTING": Stage.SHIP,
    "SHIPPING": Stage.SHIP,
}


class Priority(IntEnum):
    """Commercial priority of a pump order."""

    LOW = 1
    NORMAL = 2
    HIGH = 3
    RUSH = 4
    URGENT = 5

    @property
    def label(self) -> str:
        return self.name.title()

    @classmethod
    def parse(cls, value: Union["Priority", str, int]) -> "Priority":
        if isinstance(value, Priority):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError as exc:
                raise InvalidScheduleInputError(
                    f"unknown priority {value!r}", field="priority"
                ) from exc
        try:
            return cls[str(value).strip().upper()]
        except KeyError as exc:
            raise InvalidScheduleInputError(
                f"unknown priority {value!r}", field="priority"
            ) from exc


class RiskStatus(str, Enum):
    """Delivery risk classification shown on badges."""

    ON_TRACK = "on-track"
    AT_RISK = "at-risk"
    LATE = "late"


@dataclass(frozen=True, slots=True)
class StageDurations:
    """Base calendar-day lead times for one pump model."""

    fabrication: Optional[float] = None
    powder_coat: Optional[float] = None
    assembly: Optional[float] = None
    ship: Optional[float] = None
    total_days: Optional[float] = None

    def for_stage(self, stage: Stage) -> Optional[float]:
        key = STAGE_DURATION_FIELDS.get(stage)
        return getattr(self, key) if key else None


STAGE_DURATION_FIELDS: Dict[Stage, str] = {
    Stage.FABRICATION: "fabrication",
    Stage.POWDER_COAT: "powder_coat",
    Stage.ASSEMBLY: "assembly",
    Stage.SHIP: "ship",
}


@dataclass(frozen=True, slots=True)
class WorkHours:
    """Labor hours for the internally staffed stages."""

    fabrication: float = 0.0
    assembly: float = 0.0
    ship: float = 0.0

    def for_stage(self, stage: Stage) -> float:
        key = STAGE_DURATION_FIELDS.get(stage)
        if key is None or stage not in INTERNAL_STAGES:
            return 0.0
        return getattr(self, key)


@dataclass(slots=True)
class Pump:
    """A pump record as supplied by the pump store."""

    id: str
    model: str
    stage: Stage = Stage.QUEUE
    priority: Priority = Priority.NORMAL
    promise_date: Optional[DateLike] = None
    forecast_start: Optional[DateLike] = None
    forecast_end: Optional[DateLike] = None
    powder_coat_vendor_id: Optional[str] = None
    logged_hours: Optional[WorkHours] = None
    customer: str = ""
    po: str = ""
    serial: Optional[int] = None

    def __post_init__(self) -> None:
        self.stage = Stage.parse(self.stage, pump_id=self.id)
        self.priority = Priority.parse(self.priority)
        for name in DATE_HINT_FIELDS:
            _check_date_hint(getattr(self, name), pump_id=self.id, name=name)


DATE_HINT_FIELDS = ("promise_date", "forecast_start", "forecast_end")


def _check_date_hint(value: object, *, pump_id: str, name: str) -> None:
    if value is None or isinstance(value, date):
        return
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            datetime.fromisoformat(text)
            return
        except ValueError:
            pass
    raise InvalidScheduleInputError(
        f"{name} is not an ISO date: {value!r}", pump_id=pump_id, field=name
    )


@dataclass(frozen=True, slots=True)
class StageBlock:
    """One entry of a projected timeline. Read-only snapshot."""

    stage: Stage
    start: datetime
    end: datetime
    days: float
    paused_days: float = 0.0


@dataclass(frozen=True, slots=True)
class ScheduleWindow:
    start_iso: str
    end_iso: str


@dataclass(frozen=True, slots=True)
class ProjectionResult:
    """Projected timeline of a pump together with its overall window."""

    pump_id: str
    timeline: Tuple[StageBlock, ...]
    window: Optional[ScheduleWindow]


@dataclass(frozen=True, slots=True)
class RiskResult:
    status: RiskStatus
    days_until_promise: Optional[int]
    days_behind_schedule: int
    reasons: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class StageMoveEvent:
    """Stage transition as recorded by the stage ledger."""

    pump_id: str
    from_stage: Optional[Stage]
    to_stage: Stage
    occurred_at: datetime
    days_in_previous_stage: Optional[float] = None


@dataclass(frozen=True, slots=True)
class PauseInterval:
    """A period during which a pump was paused in a stage."""

    pump_id: str
    stage: Stage
    paused_at: datetime
    resumed_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.resumed_at is None


@dataclass(frozen=True, slots=True)
class CalendarStageEvent:
    """Day-indexed event consumed by calendar renderers."""

    pump_id: str
    stage: Stage
    title: str
    subtitle: str
    customer: str
    priority: Priority
    start_day: float
    span: float
    risk_status: Optional[RiskStatus] = None


__all__ = [
    "CalendarStageEvent",
    "DateLike",
    "INTERNAL_STAGES",
    "InvalidScheduleInputError",
    "LEGACY_STAGE_NAMES",
    "MIN_STAGE_DAYS",
    "PauseInterval",
    "Priority",
    "PRODUCTION_STAGES",
    "ProjectionResult",
    "Pump",
    "RiskResult",
    "RiskStatus",
    "ScheduleWindow",
    "Stage",
    "STAGE_LABELS",
    "STAGE_SEQUENCE",
    "StageBlock",
    "StageDurations",
    "StageMoveEvent",
    "WorkHours",
]
