"""Projection engine turning pumps, lead times and capacity into timelines.

All functions here are pure: they never mutate pumps or configuration and
hold no state between calls. Recompute whenever inputs change.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .capacity import CapacityConfig, VendorWeekBookings, adjust_duration
from .domain import (
    MIN_STAGE_DAYS,
    PRODUCTION_STAGES,
    STAGE_DURATION_FIELDS,
    DateLike,
    InvalidScheduleInputError,
    ProjectionResult,
    Pump,
    ScheduleWindow,
    Stage,
    StageBlock,
    StageDurations,
    WorkHours,
)
from .work_calendar import (
    add_business_days,
    add_days,
    days_between,
    start_of_day,
    to_datetime,
    week_start,
)

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_WEEKS = 52

LeadTimeLookup = Callable[[str], Optional[StageDurations]]
WorkHoursLookup = Callable[[str], Optional[WorkHours]]


def resolve_schedule_start(
    pump: Pump, total_lead_days: float, *, now: Optional[DateLike] = None
) -> datetime:
    """Return the day a pump's pipeline starts.

    ``forecast_start`` wins over ``forecast_end``; ``forecast_end`` is
    backdated by ``total_lead_days`` business days; without hints the
    current day is used.
    """

    if pump.forecast_start:
        return start_of_day(pump.forecast_start)
    if pump.forecast_end:
        business_days = int(math.ceil(total_lead_days))
        return start_of_day(add_business_days(pump.forecast_end, -business_days))
    return start_of_day(now if now is not None else datetime.now())


def _base_days(
    pump: Pump,
    stage: Stage,
    lead_times: Optional[StageDurations],
    buffer_days: float,
) -> float:
    if stage is Stage.STAGED_FOR_POWDER:
        return float(buffer_days)
    if lead_times is None:
        return MIN_STAGE_DAYS
    value = lead_times.for_stage(stage)
    if value is None:
        return MIN_STAGE_DAYS
    if value <= 0:
        name = STAGE_DURATION_FIELDS[stage]
        raise InvalidScheduleInputError(
            f"{name} lead time must be positive, got {value!r}",
            pump_id=pump.id,
            field=f"lead_times.{name}",
        )
    return float(value)


def stage_durations(
    pump: Pump,
    lead_times: Optional[StageDurations],
    *,
    capacity_config: Optional[CapacityConfig] = None,
    work_hours: Optional[WorkHours] = None,
) -> List[Tuple[Stage, float]]:
    """Adjusted duration of every stage in the full production chain."""

    buffer_days = capacity_config.staged_for_powder_buffer_days if capacity_config else 0
    durations: List[Tuple[Stage, float]] = []
    for stage in PRODUCTION_STAGES:
        if stage is Stage.STAGED_FOR_POWDER and buffer_days <= 0:
            continue
        base = _base_days(pump, stage, lead_times, buffer_days)
        required = work_hours.for_stage(stage) if work_hours else 0.0
        consumed = 0.0
        # Logged hours only shorten the stage the pump is working in now.
        if pump.logged_hours is not None and stage is pump.stage:
            consumed = pump.logged_hours.for_stage(stage)
        days = adjust_duration(
            stage,
            base,
            consumed,
            capacity_config,
            required_hours=required or None,
        )
        durations.append((stage, days))
    return durations


def _chain(durations: Iterable[Tuple[Stage, float]], start: datetime) -> List[StageBlock]:
    blocks: List[StageBlock] = []
    cursor = start
    for stage, days in durations:
        end = add_days(cursor, days)
        blocks.append(StageBlock(stage=stage, start=cursor, end=end, days=days))
        cursor = end
    return blocks


def build_projection(
    pump: Pump,
    lead_times: Optional[StageDurations],
    *,
    start_date: Optional[DateLike] = None,
    capacity_config: Optional[CapacityConfig] = None,
    work_hours: Optional[WorkHours] = None,
    now: Optional[DateLike] = None,
) -> Tuple[StageBlock, ...]:
    """Project the remaining stage blocks of one pump.

    The chain is anchored at the true pipeline start and then truncated to
    the pump's current stage, so passed stages still push later ones out.
    ``lead_times=None`` (unknown model) projects every stage at the minimum
    duration.
    """

    if pump.stage.is_terminal:
        return ()
    durations = stage_durations(
        pump, lead_times, capacity_config=capacity_config, work_hours=work_hours
    )
    if start_date is not None:
        anchor = start_of_day(start_date)
    else:
        total = sum(days for _, days in durations)
        anchor = resolve_schedule_start(pump, total, now=now)
    current = pump.stage.index
    return tuple(block for block in _chain(durations, anchor) if block.stage.index >= current)


def schedule_window(timeline: Sequence[StageBlock]) -> Optional[ScheduleWindow]:
    if not timeline:
        return None
    return ScheduleWindow(
        start_iso=timeline[0].start.isoformat(),
        end_iso=timeline[-1].end.isoformat(),
    )


def build_projection_result(
    pump: Pump,
    lead_times: Optional[StageDurations],
    **options,
) -> ProjectionResult:
    timeline = build_projection(pump, lead_times, **options)
    return ProjectionResult(pump_id=pump.id, timeline=timeline, window=schedule_window(timeline))


# ----------------------------------------------------------------------
# Batch projection with vendor queueing
# ----------------------------------------------------------------------
def _powder_block(timeline: Sequence[StageBlock]) -> Optional[StageBlock]:
    for block in timeline:
        if block.stage is Stage.POWDER_COAT:
            return block
    return None


def _queue_order(item: Tuple[Pump, StageBlock]) -> Tuple[int, int, datetime, datetime, str]:
    pump, block = item
    committed = 0 if pump.stage is Stage.POWDER_COAT else 1
    promise = to_datetime(pump.promise_date) if pump.promise_date else datetime.max
    return (committed, -int(pump.priority), promise, block.start, pump.id)


def _defer_powder_coat(timeline: Sequence[StageBlock], new_start: datetime) -> Tuple[StageBlock, ...]:
    """Move powder coat to ``new_start``, stretching the staging buffer to fill the wait."""

    index = next(i for i, block in enumerate(timeline) if block.stage is Stage.POWDER_COAT)
    powder = timeline[index]
    head = list(timeline[:index])
    if head and head[-1].stage is Stage.STAGED_FOR_POWDER:
        buffer = head[-1]
        head[-1] = replace(buffer, end=new_start, days=days_between(buffer.start, new_start))
    else:
        if days_between(powder.start, new_start) < MIN_STAGE_DAYS:
            new_start = add_days(powder.start, MIN_STAGE_DAYS)
        head.append(
            StageBlock(
                stage=Stage.STAGED_FOR_POWDER,
                start=powder.start,
                end=new_start,
                days=days_between(powder.start, new_start),
            )
        )
    delay: timedelta = new_start - powder.start
    tail = [
        replace(block, start=block.start + delay, end=block.end + delay)
        for block in timeline[index:]
    ]
    return tuple(head + tail)


def project_capacity_aware_timelines(
    pumps: Sequence[Pump],
    capacity_config: CapacityConfig,
    lead_time_lookup: LeadTimeLookup,
    *,
    work_hours_lookup: Optional[WorkHoursLookup] = None,
    now: Optional[DateLike] = None,
    lookahead_weeks: int = DEFAULT_LOOKAHEAD_WEEKS,
) -> Dict[str, Tuple[StageBlock, ...]]:
    """Project every pump, then queue powder coat against vendor weekly limits.

    The whole pump set must be passed at once: vendor slots are handed out
    in one pass in priority order, so a pump projected alone cannot see
    the peers that push it into a later week.
    """

    timelines: Dict[str, Tuple[StageBlock, ...]] = {}
    for pump in pumps:
        timelines[pump.id] = build_projection(
            pump,
            lead_time_lookup(pump.model),
            capacity_config=capacity_config,
            work_hours=work_hours_lookup(pump.model) if work_hours_lookup else None,
            now=now,
        )

    bookings = VendorWeekBookings(capacity_config.vendors)
    if not bookings:
        return timelines

    queue: List[Tuple[Pump, StageBlock]] = []
    for pump in pumps:
        powder = _powder_block(timelines[pump.id])
        if powder is not None:
            queue.append((pump, powder))
    queue.sort(key=_queue_order)

    for pump, powder in queue:
        naive_week = week_start(powder.start)
        if pump.stage is Stage.POWDER_COAT:
            vendor_id = pump.powder_coat_vendor_id
            if capacity_config.vendor(vendor_id) is None:
                vendor_id, _, _ = bookings.find_slot(naive_week, lookahead_weeks=0)
            bookings.book(vendor_id, naive_week)
            continue
        vendor_id, week, within_window = bookings.find_slot(
            naive_week, pump.powder_coat_vendor_id, lookahead_weeks=lookahead_weeks
        )
        if not within_window:
            logger.warning(
                "No powder coat capacity for pump %s within %d weeks, booking %s with %s",
                pump.id,
                lookahead_weeks,
                week.date().isoformat(),
                vendor_id,
            )
        bookings.book(vendor_id, week)
        if week > naive_week:
            logger.debug(
                "Pump %s powder coat deferred from week %s to %s (%s)",
                pump.id,
                naive_week.date().isoformat(),
                week.date().isoformat(),
                vendor_id,
            )
            timelines[pump.id] = _defer_powder_coat(timelines[pump.id], week)
    return timelines


__all__ = [
    "DEFAULT_LOOKAHEAD_WEEKS",
    "LeadTimeLookup",
    "WorkHoursLookup",
    "build_projection",
    "build_projection_result",
    "project_capacity_aware_timelines",
    "resolve_schedule_start",
    "schedule_window",
    "stage_durations",
]
