"""Unit tests for paused-time integration and stage history."""

from datetime import datetime

import pytest

from pump_schedule.domain import PauseInterval, Stage, StageBlock, StageMoveEvent
from pump_schedule.history import (
    apply_paused_time,
    days_in_previous_stage,
    integrate_paused_time,
    latest_entry,
    staged_for_powder_history,
)


def move(from_stage, to_stage, when):
    return StageMoveEvent(pump_id="p1", from_stage=from_stage, to_stage=to_stage, occurred_at=when)


def pause(stage, start, end=None):
    return PauseInterval(pump_id="p1", stage=stage, paused_at=start, resumed_at=end)


class TestIntegratePausedTime:
    """Tests for integrate_paused_time."""

    @pytest.fixture
    def block(self):
        return StageBlock(
            stage=Stage.FABRICATION,
            start=datetime(2025, 1, 6),
            end=datetime(2025, 1, 11),
            days=5,
        )

    @pytest.fixture
    def entered(self):
        return [move(Stage.QUEUE, Stage.FABRICATION, datetime(2025, 1, 6))]

    def test_closed_pause_counts(self, block, entered):
        pauses = [pause(Stage.FABRICATION, datetime(2025, 1, 7, 12), datetime(2025, 1, 8))]

        assert integrate_paused_time(block, entered, pauses).paused_days == 0.5

    def test_open_pause_runs_to_block_end(self, block, entered):
        pauses = [
            pause(Stage.FABRICATION, datetime(2025, 1, 7, 12), datetime(2025, 1, 8)),
            pause(Stage.FABRICATION, datetime(2025, 1, 10)),
        ]

        assert integrate_paused_time(block, entered, pauses).paused_days == 1.5

    def test_other_stages_and_earlier_visits_are_ignored(self, block):
        events = [
            move(Stage.QUEUE, Stage.FABRICATION, datetime(2024, 12, 20)),
            move(Stage.FABRICATION, Stage.QUEUE, datetime(2024, 12, 23)),
            move(Stage.QUEUE, Stage.FABRICATION, datetime(2025, 1, 6)),
        ]
        pauses = [
            pause(Stage.FABRICATION, datetime(2024, 12, 21), datetime(2024, 12, 22)),
            pause(Stage.ASSEMBLY, datetime(2025, 1, 7), datetime(2025, 1, 8)),
        ]

        assert integrate_paused_time(block, events, pauses).paused_days == 0.0

    def test_no_entry_event_means_no_pause(self, block):
        pauses = [pause(Stage.FABRICATION, datetime(2025, 1, 7), datetime(2025, 1, 8))]

        assert integrate_paused_time(block, [], pauses).paused_days == 0.0

    def test_clamped_to_block_length(self, entered):
        short = StageBlock(
            stage=Stage.FABRICATION,
            start=datetime(2025, 1, 6),
            end=datetime(2025, 1, 6, 12),
            days=0.5,
        )
        pauses = [pause(Stage.FABRICATION, datetime(2025, 1, 6), datetime(2025, 1, 9))]

        assert integrate_paused_time(short, entered, pauses).paused_days == 0.5

    def test_returns_a_new_block(self, block, entered):
        pauses = [pause(Stage.FABRICATION, datetime(2025, 1, 7), datetime(2025, 1, 8))]

        updated = integrate_paused_time(block, entered, pauses)

        assert updated is not block
        assert block.paused_days == 0.0
        assert (updated.start, updated.end) == (block.start, block.end)

    def test_apply_to_timeline(self, block, entered):
        following = StageBlock(
            stage=Stage.POWDER_COAT,
            start=block.end,
            end=datetime(2025, 1, 14),
            days=3,
        )
        pauses = [pause(Stage.FABRICATION, datetime(2025, 1, 7), datetime(2025, 1, 8))]

        timeline = apply_paused_time((block, following), entered, pauses)

        assert [item.paused_days for item in timeline] == [1.0, 0.0]


class TestStageHistory:
    def test_latest_entry(self):
        events = [
            move(Stage.QUEUE, Stage.FABRICATION, datetime(2025, 1, 2)),
            move(Stage.FABRICATION, Stage.QUEUE, datetime(2025, 1, 3)),
            move(Stage.QUEUE, Stage.FABRICATION, datetime(2025, 1, 6)),
        ]

        assert latest_entry(events, Stage.FABRICATION).occurred_at == datetime(2025, 1, 6)
        assert latest_entry(events, Stage.ASSEMBLY) is None

    def test_days_in_previous_stage(self):
        events = [move(Stage.QUEUE, Stage.FABRICATION, datetime(2025, 1, 6))]

        days = days_in_previous_stage(events, Stage.FABRICATION, datetime(2025, 1, 8, 8))

        assert days == 2.33

    def test_days_in_previous_stage_without_entry(self):
        assert days_in_previous_stage([], Stage.QUEUE, datetime(2025, 1, 8)) is None

    def test_staged_for_powder_history(self):
        events = [
            move(Stage.FABRICATION, Stage.STAGED_FOR_POWDER, datetime(2025, 1, 6)),
            move(Stage.STAGED_FOR_POWDER, Stage.POWDER_COAT, datetime(2025, 1, 8)),
        ]

        history = staged_for_powder_history(events)

        assert history.completed
        assert history.last_entered_at == datetime(2025, 1, 6)
        assert history.last_exited_at == datetime(2025, 1, 8)

    def test_staged_for_powder_history_still_waiting(self):
        events = [move(Stage.FABRICATION, Stage.STAGED_FOR_POWDER, datetime(2025, 1, 6))]

        history = staged_for_powder_history(events)

        assert not history.completed
        assert history.last_exited_at is None
