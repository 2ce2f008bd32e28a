"""Shared fixtures for the pump scheduling tests."""

from datetime import datetime

import pytest

from pump_schedule.capacity import (
    CapacityConfig,
    DepartmentStaffing,
    PowderCoatVendor,
    default_capacity_config,
)
from pump_schedule.catalog import ModelCatalog
from pump_schedule.domain import StageDurations, WorkHours
from pump_schedule.services import ScheduleService


@pytest.fixture
def lead_times():
    """Lead times of the DD-6 reference model."""
    return StageDurations(fabrication=5, powder_coat=3, assembly=4, ship=2, total_days=14)


@pytest.fixture
def short_lead_times():
    return StageDurations(fabrication=3, powder_coat=3, assembly=2, ship=1, total_days=9)


@pytest.fixture
def work_hours():
    return WorkHours(fabrication=112, assembly=63, ship=0)


@pytest.fixture
def capacity_config():
    return default_capacity_config()


@pytest.fixture
def single_vendor_config():
    """Build a config with one powder coat vendor of the given weekly limit."""

    def factory(max_pumps_per_week: int = 2, buffer_days: int = 1) -> CapacityConfig:
        base = default_capacity_config()
        return CapacityConfig(
            fabrication=base.fabrication,
            assembly=base.assembly,
            ship=base.ship,
            vendors=(PowderCoatVendor(id="pc-1", name="Front Range Coatings", max_pumps_per_week=max_pumps_per_week),),
            staged_for_powder_buffer_days=buffer_days,
        )

    return factory


@pytest.fixture
def full_day_staffing():
    """Four people at full efficiency: 32 man-hours a day."""
    return DepartmentStaffing(employee_count=4, efficiency=1.0, daily_man_hours=32)


@pytest.fixture
def catalog(lead_times, short_lead_times):
    catalog = ModelCatalog()
    catalog.register("DD-6 SAFE", lead_times)
    catalog.register("HC-150", short_lead_times)
    return catalog


@pytest.fixture
def service(catalog, capacity_config):
    return ScheduleService(catalog=catalog, capacity_config=capacity_config)


@pytest.fixture
def monday():
    return datetime(2025, 1, 6)
