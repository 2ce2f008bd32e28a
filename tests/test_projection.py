"""Unit tests for single-pump projections."""

import dataclasses
from datetime import date, datetime

import pytest

from pump_schedule.capacity import CapacityConfig
from pump_schedule.domain import (
    InvalidScheduleInputError,
    Pump,
    Stage,
    StageDurations,
    WorkHours,
)
from pump_schedule.projection import (
    build_projection,
    build_projection_result,
    resolve_schedule_start,
    stage_durations,
)


def assert_contiguous(timeline):
    for previous, following in zip(timeline, timeline[1:]):
        assert previous.end == following.start


class TestResolveScheduleStart:
    """Tests for anchor resolution."""

    def test_forecast_start_is_normalised_to_start_of_day(self):
        pump = Pump(id="p1", model="DD-6 SAFE", forecast_start="2025-01-01T15:45:00")

        assert resolve_schedule_start(pump, 14) == datetime(2025, 1, 1)

    def test_forecast_start_wins_over_forecast_end(self):
        pump = Pump(
            id="p1",
            model="DD-6 SAFE",
            forecast_start=date(2025, 2, 3),
            forecast_end=date(2025, 3, 1),
        )

        assert resolve_schedule_start(pump, 14) == datetime(2025, 2, 3)

    def test_forecast_end_backdates_by_business_days(self):
        pump = Pump(id="p1", model="DD-6 SAFE", forecast_end=date(2025, 1, 17))

        assert resolve_schedule_start(pump, 14) == datetime(2024, 12, 30)

    def test_fractional_lead_days_round_up(self):
        pump = Pump(id="p1", model="DD-6 SAFE", forecast_end=date(2025, 1, 17))

        assert resolve_schedule_start(pump, 13.5) == datetime(2024, 12, 30)

    def test_falls_back_to_today(self):
        pump = Pump(id="p1", model="DD-6 SAFE")

        start = resolve_schedule_start(pump, 14, now=datetime(2025, 3, 5, 14, 30))

        assert start == datetime(2025, 3, 5)


class TestBuildProjection:
    """Tests for build_projection."""

    @pytest.fixture
    def queued_pump(self):
        return Pump(id="p1", model="DD-6 SAFE", stage=Stage.QUEUE, forecast_start="2025-01-01")

    def test_reference_scenario(self, queued_pump, lead_times):
        result = build_projection_result(queued_pump, lead_times)

        assert [block.stage for block in result.timeline] == [
            Stage.FABRICATION,
            Stage.POWDER_COAT,
            Stage.ASSEMBLY,
            Stage.SHIP,
        ]
        assert result.timeline[-1].end == datetime(2025, 1, 15)
        assert result.window.start_iso.startswith("2025-01-01")
        assert result.window.end_iso.startswith("2025-01-15")

    def test_blocks_are_contiguous(self, queued_pump, lead_times, capacity_config, work_hours):
        timeline = build_projection(
            queued_pump, lead_times, capacity_config=capacity_config, work_hours=work_hours
        )

        assert_contiguous(timeline)

    def test_buffer_block_follows_fabrication_with_capacity(self, queued_pump, lead_times, capacity_config):
        timeline = build_projection(queued_pump, lead_times, capacity_config=capacity_config)

        stages = [block.stage for block in timeline]
        assert stages[1] is Stage.STAGED_FOR_POWDER
        assert timeline[1].days == 1
        assert timeline[-1].end == datetime(2025, 1, 16)

    def test_no_buffer_block_when_buffer_is_zero(self, queued_pump, lead_times, single_vendor_config):
        config = single_vendor_config(buffer_days=0)

        timeline = build_projection(queued_pump, lead_times, capacity_config=config)

        assert Stage.STAGED_FOR_POWDER not in [block.stage for block in timeline]

    def test_truncates_to_current_stage(self, lead_times):
        pump = Pump(id="p2", model="DD-6 SAFE", stage="ASSEMBLY", forecast_start="2025-01-01")

        timeline = build_projection(pump, lead_times)

        assert [block.stage for block in timeline] == [Stage.ASSEMBLY, Stage.SHIP]
        # Passed stages still push the remaining ones out.
        assert timeline[0].start == datetime(2025, 1, 9)
        assert timeline[-1].end == datetime(2025, 1, 15)

    def test_closed_pump_has_empty_timeline(self, lead_times):
        pump = Pump(id="p3", model="DD-6 SAFE", stage=Stage.CLOSED, forecast_start="2025-01-01")

        result = build_projection_result(pump, lead_times)

        assert result.timeline == ()
        assert result.window is None

    def test_start_date_override(self, queued_pump, lead_times):
        timeline = build_projection(queued_pump, lead_times, start_date=date(2025, 2, 3))

        assert timeline[0].start == datetime(2025, 2, 3)
        assert timeline[-1].end == datetime(2025, 2, 17)

    def test_unknown_model_uses_minimum_durations(self, queued_pump):
        timeline = build_projection(queued_pump, None)

        assert len(timeline) == 4
        assert all(block.days == 0.25 for block in timeline)
        assert timeline[-1].end == datetime(2025, 1, 2)

    def test_missing_stage_lead_time_defaults_to_minimum(self, queued_pump):
        timeline = build_projection(queued_pump, StageDurations(fabrication=5, assembly=4, ship=2))

        powder = next(block for block in timeline if block.stage is Stage.POWDER_COAT)
        assert powder.days == 0.25

    def test_minimum_duration_floor(self, queued_pump, capacity_config):
        tiny = StageDurations(fabrication=0.1, powder_coat=0.05, assembly=0.1, ship=0.01)
        hours = WorkHours(fabrication=1, assembly=1, ship=1)

        timeline = build_projection(
            queued_pump, tiny, capacity_config=capacity_config, work_hours=hours
        )

        assert all(block.days >= 0.25 for block in timeline)

    def test_zero_lead_time_raises(self, queued_pump):
        with pytest.raises(InvalidScheduleInputError) as excinfo:
            build_projection(queued_pump, StageDurations(fabrication=0, powder_coat=3, assembly=4, ship=2))

        assert excinfo.value.pump_id == "p1"
        assert excinfo.value.field == "lead_times.fabrication"

    def test_negative_lead_time_raises(self, queued_pump):
        with pytest.raises(InvalidScheduleInputError):
            build_projection(queued_pump, StageDurations(fabrication=5, powder_coat=-1, assembly=4, ship=2))

    def test_idempotent(self, queued_pump, lead_times, capacity_config, work_hours):
        first = build_projection(
            queued_pump, lead_times, capacity_config=capacity_config, work_hours=work_hours
        )
        second = build_projection(
            queued_pump, lead_times, capacity_config=capacity_config, work_hours=work_hours
        )

        assert [(b.start, b.end) for b in first] == [(b.start, b.end) for b in second]

    def test_blocks_are_frozen(self, queued_pump, lead_times):
        timeline = build_projection(queued_pump, lead_times)

        with pytest.raises(dataclasses.FrozenInstanceError):
            timeline[0].days = 10

    def test_does_not_mutate_pump(self, queued_pump, lead_times, capacity_config):
        before = dataclasses.asdict(queued_pump)

        build_projection(queued_pump, lead_times, capacity_config=capacity_config)

        assert dataclasses.asdict(queued_pump) == before


class TestCapacityAdjustedDurations:
    """Stage durations with staffing and labor data."""

    def test_logged_hours_shorten_only_current_stage(self, lead_times, capacity_config, work_hours):
        pump = Pump(
            id="p1",
            model="DD-6 SAFE",
            stage=Stage.FABRICATION,
            forecast_start="2025-01-06",
            logged_hours=WorkHours(fabrication=56, assembly=30),
        )

        durations = dict(
            stage_durations(pump, lead_times, capacity_config=capacity_config, work_hours=work_hours)
        )

        # 56 of 112 hours left at 28 man-hours a day.
        assert durations[Stage.FABRICATION] == 2.0
        # Assembly logged hours are ignored until the pump gets there: 63 / 21.
        assert durations[Stage.ASSEMBLY] == 3.0
        assert durations[Stage.POWDER_COAT] == 3
        assert durations[Stage.SHIP] == 2

    def test_adjusted_timeline_end(self, lead_times, capacity_config, work_hours):
        pump = Pump(
            id="p1",
            model="DD-6 SAFE",
            stage=Stage.FABRICATION,
            forecast_start="2025-01-06",
            logged_hours=WorkHours(fabrication=56),
        )

        timeline = build_projection(
            pump, lead_times, capacity_config=capacity_config, work_hours=work_hours
        )

        assert timeline[-1].end == datetime(2025, 1, 17)

    def test_staffing_change_moves_the_timeline(self, lead_times, capacity_config, work_hours, full_day_staffing):
        pump = Pump(id="p1", model="DD-6 SAFE", forecast_start="2025-01-06")
        faster = CapacityConfig(
            fabrication=full_day_staffing,
            assembly=capacity_config.assembly,
            ship=capacity_config.ship,
            vendors=capacity_config.vendors,
        )

        slow = build_projection(pump, lead_times, capacity_config=capacity_config, work_hours=work_hours)
        fast = build_projection(pump, lead_times, capacity_config=faster, work_hours=work_hours)

        assert fast[0].days == 3.5
        assert fast[-1].end < slow[-1].end
