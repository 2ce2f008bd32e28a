"""Ledger-derived facts: paused time, days in stage and staging history."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional, Sequence, Tuple

from .domain import PauseInterval, Stage, StageBlock, StageMoveEvent
from .work_calendar import days_between


@dataclass(frozen=True, slots=True)
class StagedForPowderHistory:
    completed: bool = False
    last_entered_at: Optional[datetime] = None
    last_exited_at: Optional[datetime] = None


def latest_entry(events: Iterable[StageMoveEvent], stage: Stage) -> Optional[StageMoveEvent]:
    """Most recent transition into ``stage``, if the ledger has one."""

    entries = [event for event in events if event.to_stage is stage]
    if not entries:
        return None
    return max(entries, key=lambda event: event.occurred_at)


def integrate_paused_time(
    block: StageBlock,
    stage_events: Sequence[StageMoveEvent],
    pauses: Sequence[PauseInterval],
) -> StageBlock:
    """Return ``block`` with ``paused_days`` set from recorded pauses.

    Only pauses of the block's stage that began after the pump last entered
    that stage count. Without an entry event the pause time is zero.
    """

    entry = latest_entry(stage_events, block.stage)
    if entry is None:
        return replace(block, paused_days=0.0)
    paused = 0.0
    for pause in pauses:
        if pause.stage is not block.stage or pause.paused_at < entry.occurred_at:
            continue
        start = max(pause.paused_at, block.start)
        end = min(pause.resumed_at or block.end, block.end)
        if end > start:
            paused += days_between(start, end)
    return replace(block, paused_days=min(max(paused, 0.0), block.days))


def apply_paused_time(
    timeline: Sequence[StageBlock],
    stage_events: Sequence[StageMoveEvent],
    pauses: Sequence[PauseInterval],
) -> Tuple[StageBlock, ...]:
    return tuple(integrate_paused_time(block, stage_events, pauses) for block in timeline)


def days_in_previous_stage(
    stage_events: Iterable[StageMoveEvent],
    from_stage: Optional[Stage],
    moved_at: datetime,
) -> Optional[float]:
    """Days a pump spent in ``from_stage`` before moving at ``moved_at``."""

    if from_stage is None:
        return None
    entry = latest_entry(stage_events, from_stage)
    if entry is None:
        return None
    return round(days_between(entry.occurred_at, moved_at), 2)


def staged_for_powder_history(stage_events: Iterable[StageMoveEvent]) -> StagedForPowderHistory:
    completed = False
    entered: Optional[datetime] = None
    exited: Optional[datetime] = None
    for event in sorted(stage_events, key=lambda item: item.occurred_at):
        if event.to_stage is Stage.STAGED_FOR_POWDER:
            entered = event.occurred_at
        if event.from_stage is Stage.STAGED_FOR_POWDER:
            exited = event.occurred_at
            if event.to_stage.index > Stage.STAGED_FOR_POWDER.index:
                completed = True
    return StagedForPowderHistory(completed=completed, last_entered_at=entered, last_exited_at=exited)


__all__ = [
    "StagedForPowderHistory",
    "apply_paused_time",
    "days_in_previous_stage",
    "integrate_paused_time",
    "latest_entry",
    "staged_for_powder_history",
]
