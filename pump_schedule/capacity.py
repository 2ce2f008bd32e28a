"""Department staffing, vendor capacity and capacity-adjusted stage durations."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from .domain import (
    INTERNAL_STAGES,
    MIN_STAGE_DAYS,
    InvalidScheduleInputError,
    Stage,
    StageDurations,
)

logger = logging.getLogger(__name__)

HOURS_PER_SHIFT = 8.0
DEFAULT_WORK_DAY_HOURS: Tuple[float, ...] = (8.0, 8.0, 8.0, 8.0, 8.0, 0.0, 0.0)
DEPARTMENTS = ("fabrication", "assembly", "ship")


@dataclass(frozen=True, slots=True)
class DepartmentStaffing:
    """Staffing of an internal department.

    ``work_day_hours`` holds the hours available on each weekday, Monday
    first. Zero is allowed for weekends and holidays.
    """

    employee_count: float
    efficiency: float
    daily_man_hours: float
    work_day_hours: Tuple[float, ...] = DEFAULT_WORK_DAY_HOURS

    def __post_init__(self) -> None:
        if self.employee_count <= 0:
            raise InvalidScheduleInputError(
                "employee count must be positive", field="employee_count"
            )
        if not 0 < self.efficiency <= 1:
            raise InvalidScheduleInputError(
                "efficiency must be within (0, 1]", field="efficiency"
            )
        if self.daily_man_hours <= 0:
            raise InvalidScheduleInputError(
                "daily man-hours must be positive", field="daily_man_hours"
            )
        if len(self.work_day_hours) != 7:
            raise InvalidScheduleInputError(
                "work day hours must list all seven weekdays", field="work_day_hours"
            )
        for hours in self.work_day_hours:
            if hours < 0 or hours > 24:
                raise InvalidScheduleInputError(
                    "work day hours must be within 0..24", field="work_day_hours"
                )

    @property
    def weekly_man_hours(self) -> float:
        return self.employee_count * self.efficiency * sum(self.work_day_hours)


@dataclass(frozen=True, slots=True)
class PowderCoatVendor:
    """External powder coat vendor with a weekly intake limit."""

    id: str
    name: str
    max_pumps_per_week: int

    def __post_init__(self) -> None:
        if int(self.max_pumps_per_week) != self.max_pumps_per_week or self.max_pumps_per_week < 1:
            raise InvalidScheduleInputError(
                f"vendor {self.id!r} needs a positive whole weekly limit",
                field="max_pumps_per_week",
            )


@dataclass(frozen=True, slots=True)
class CapacityConfig:
    """Shared departmental and vendor capacity."""

    fabrication: DepartmentStaffing
    assembly: DepartmentStaffing
    ship: DepartmentStaffing
    vendors: Tuple[PowderCoatVendor, ...] = field(default_factory=tuple)
    staged_for_powder_buffer_days: int = 1

    def __post_init__(self) -> None:
        if self.staged_for_powder_buffer_days < 0:
            raise InvalidScheduleInputError(
                "buffer days cannot be negative", field="staged_for_powder_buffer_days"
            )

    def department(self, stage: Stage) -> Optional[DepartmentStaffing]:
        return {
            Stage.FABRICATION: self.fabrication,
            Stage.ASSEMBLY: self.assembly,
            Stage.SHIP: self.ship,
        }.get(stage)

    def vendor(self, vendor_id: Optional[str]) -> Optional[PowderCoatVendor]:
        for vendor in self.vendors:
            if vendor.id == vendor_id:
                return vendor
        return None


def _staffing(employee_count: float, efficiency: float) -> DepartmentStaffing:
    return DepartmentStaffing(
        employee_count=employee_count,
        efficiency=efficiency,
        daily_man_hours=round(employee_count * HOURS_PER_SHIFT * efficiency, 4),
    )


def default_capacity_config() -> CapacityConfig:
    return CapacityConfig(
        fabrication=_staffing(4, 0.875),
        assembly=_staffing(3, 0.875),
        ship=DepartmentStaffing(employee_count=0.56, efficiency=0.893, daily_man_hours=4.0),
        vendors=(
            PowderCoatVendor(id="pc-1", name="Powder Coat Vendor 1", max_pumps_per_week=4),
            PowderCoatVendor(id="pc-2", name="Powder Coat Vendor 2", max_pumps_per_week=2),
        ),
        staged_for_powder_buffer_days=1,
    )


# ----------------------------------------------------------------------
# Duration adjustment
# ----------------------------------------------------------------------
def round_to_hour(days: float) -> float:
    return round(days * 24) / 24


def adjust_duration(
    stage: Stage,
    base_days: float,
    work_hours_consumed: float = 0.0,
    capacity_config: Optional[CapacityConfig] = None,
    *,
    required_hours: Optional[float] = None,
) -> float:
    """Return the duration in days a stage is projected to take.

    Powder coat and its staging buffer are vendor turnaround and keep the
    base lead time. Internal stages are converted to remaining labor hours
    over the department's daily man-hours when work-hours data exists.
    """

    if base_days <= 0:
        raise InvalidScheduleInputError(
            f"{stage.value} base duration must be positive, got {base_days!r}",
            field="base_days",
        )
    if stage in (Stage.POWDER_COAT, Stage.STAGED_FOR_POWDER):
        return max(MIN_STAGE_DAYS, base_days)
    if stage not in INTERNAL_STAGES:
        raise InvalidScheduleInputError(f"stage {stage.value} has no duration", field="stage")

    staffing = capacity_config.department(stage) if capacity_config else None
    has_work_hours = bool(required_hours) or work_hours_consumed > 0
    if staffing is None or not has_work_hours:
        return max(MIN_STAGE_DAYS, base_days)

    daily = staffing.daily_man_hours
    required = required_hours if required_hours else base_days * daily
    consumed = min(max(work_hours_consumed, 0.0), required)
    days = round_to_hour((required - consumed) / daily)
    return max(MIN_STAGE_DAYS, days)


# ----------------------------------------------------------------------
# Staffing updates
# ----------------------------------------------------------------------
def update_department_staffing(
    config: CapacityConfig,
    department: str,
    *,
    employee_count: Optional[float] = None,
    efficiency: Optional[float] = None,
    daily_man_hours: Optional[float] = None,
) -> CapacityConfig:
    """Return a new config with one department's staffing changed.

    Changing head count or efficiency recomputes daily man-hours; changing
    daily man-hours recomputes efficiency for the current head count.
    """

    if department not in DEPARTMENTS:
        raise InvalidScheduleInputError(f"unknown department {department!r}", field="department")
    current: DepartmentStaffing = getattr(config, department)
    employees = current.employee_count if employee_count is None else employee_count
    eff = current.efficiency if efficiency is None else efficiency
    man_hours = current.daily_man_hours

    if employee_count is not None and employee_count != current.employee_count:
        man_hours = employees * HOURS_PER_SHIFT * eff
    elif efficiency is not None and efficiency != current.efficiency:
        man_hours = employees * HOURS_PER_SHIFT * eff
    elif daily_man_hours is not None and daily_man_hours != current.daily_man_hours:
        man_hours = daily_man_hours
        denominator = employees * HOURS_PER_SHIFT
        if denominator > 0:
            eff = man_hours / denominator

    staffing = replace(
        current, employee_count=employees, efficiency=eff, daily_man_hours=man_hours
    )
    logger.info(
        "Staffing for %s: %.2f employees, efficiency %.3f, %.2f man-hours/day",
        department,
        staffing.employee_count,
        staffing.efficiency,
        staffing.daily_man_hours,
    )
    return replace(config, **{department: staffing})


def update_vendor(
    config: CapacityConfig,
    vendor_id: str,
    *,
    name: Optional[str] = None,
    max_pumps_per_week: Optional[int] = None,
) -> CapacityConfig:
    vendor = config.vendor(vendor_id)
    if vendor is None:
        raise InvalidScheduleInputError(f"unknown vendor {vendor_id!r}", field="vendor_id")
    updated = replace(
        vendor,
        name=vendor.name if name is None else name,
        max_pumps_per_week=(
            vendor.max_pumps_per_week if max_pumps_per_week is None else max_pumps_per_week
        ),
    )
    vendors = tuple(updated if item.id == vendor_id else item for item in config.vendors)
    return replace(config, vendors=vendors)


def update_buffer_days(config: CapacityConfig, days: float) -> CapacityConfig:
    return replace(config, staged_for_powder_buffer_days=max(0, math.floor(days)))


def weekly_stage_capacity(
    stage: Stage, config: CapacityConfig, lead_times: Optional[StageDurations] = None
) -> int:
    """Number of pumps per week a stage can take on."""

    if stage is Stage.POWDER_COAT:
        return sum(vendor.max_pumps_per_week for vendor in config.vendors)
    staffing = config.department(stage)
    if staffing is None:
        raise InvalidScheduleInputError(f"stage {stage.value} has no capacity", field="stage")
    base_days = lead_times.for_stage(stage) if lead_times else None
    hours_per_pump = (base_days or 1.0) * HOURS_PER_SHIFT
    return int(math.floor(staffing.weekly_man_hours / hours_per_pump))


# ----------------------------------------------------------------------
# Vendor queueing
# ----------------------------------------------------------------------
class VendorWeekBookings:
    """Per vendor-week intake counter built during one batch projection."""

    def __init__(self, vendors: Sequence[PowderCoatVendor]) -> None:
        self._vendors: Dict[str, PowderCoatVendor] = {vendor.id: vendor for vendor in vendors}
        self._counts: Dict[Tuple[str, date], int] = defaultdict(int)

    def __bool__(self) -> bool:
        return bool(self._vendors)

    def count(self, vendor_id: str, week: datetime) -> int:
        return self._counts.get((vendor_id, week.date()), 0)

    def has_capacity(self, vendor_id: str, week: datetime) -> bool:
        vendor = self._vendors[vendor_id]
        return self.count(vendor_id, week) < vendor.max_pumps_per_week

    def book(self, vendor_id: str, week: datetime) -> None:
        self._counts[(vendor_id, week.date())] += 1

    def find_slot(
        self,
        week: datetime,
        vendor_id: Optional[str] = None,
        *,
        lookahead_weeks: int = 52,
    ) -> Tuple[str, datetime, bool]:
        """Find the first week at or after ``week`` with spare vendor capacity.

        Returns ``(vendor_id, week, within_window)``. When nothing is free
        inside the look-ahead window the week just beyond it is returned.
        """

        if vendor_id in self._vendors:
            candidates: List[str] = [vendor_id]
        else:
            candidates = list(self._vendors)
        for offset in range(lookahead_weeks + 1):
            candidate_week = week + timedelta(weeks=offset)
            for candidate in candidates:
                if self.has_capacity(candidate, candidate_week):
                    return candidate, candidate_week, True
        return candidates[0], week + timedelta(weeks=lookahead_weeks + 1), False


__all__ = [
    "CapacityConfig",
    "DEPARTMENTS",
    "DepartmentStaffing",
    "HOURS_PER_SHIFT",
    "PowderCoatVendor",
    "VendorWeekBookings",
    "adjust_duration",
    "default_capacity_config",
    "round_to_hour",
    "update_buffer_days",
    "update_department_staffing",
    "update_vendor",
    "weekly_stage_capacity",
]
