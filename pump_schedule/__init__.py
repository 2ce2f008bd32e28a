"""Capacity-aware production schedule projections for pump manufacturing.

This package turns pump records, per-model lead times and shared
departmental and vendor capacity into read-only stage timelines, and
classifies each pump's delivery risk against its promise date.
"""

from .capacity import CapacityConfig, DepartmentStaffing, PowderCoatVendor, adjust_duration
from .catalog import ModelCatalog
from .domain import (
    InvalidScheduleInputError,
    Priority,
    ProjectionResult,
    Pump,
    RiskResult,
    RiskStatus,
    Stage,
    StageBlock,
    StageDurations,
    WorkHours,
)
from .history import integrate_paused_time
from .projection import (
    build_projection,
    project_capacity_aware_timelines,
    resolve_schedule_start,
)
from .risk import calculate_risk
from .services import ScheduleService

__all__ = [
    "CapacityConfig",
    "DepartmentStaffing",
    "PowderCoatVendor",
    "adjust_duration",
    "ModelCatalog",
    "InvalidScheduleInputError",
    "Priority",
    "ProjectionResult",
    "Pump",
    "RiskResult",
    "RiskStatus",
    "Stage",
    "StageBlock",
    "StageDurations",
    "WorkHours",
    "integrate_paused_time",
    "build_projection",
    "project_capacity_aware_timelines",
    "resolve_schedule_start",
    "calculate_risk",
    "ScheduleService",
]
