"""Map projected timelines onto day-indexed calendar events."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from .domain import CalendarStageEvent, DateLike, Pump, RiskResult, StageBlock
from .work_calendar import days_between, start_of_day


def build_calendar_events(
    pumps: Sequence[Pump],
    timelines: Mapping[str, Sequence[StageBlock]],
    view_start: DateLike,
    days: int,
    *,
    risk_by_pump: Optional[Mapping[str, RiskResult]] = None,
) -> List[CalendarStageEvent]:
    """Clip every stage block to the view ``[view_start, view_start + days)``.

    ``start_day`` and ``span`` are fractional day offsets from the view
    start; blocks entirely outside the view are dropped.
    """

    origin = start_of_day(view_start)
    risks: Dict[str, RiskResult] = dict(risk_by_pump or {})
    events: List[CalendarStageEvent] = []
    for pump in pumps:
        risk = risks.get(pump.id)
        for block in timelines.get(pump.id, ()):
            first = max(0.0, days_between(origin, block.start))
            last = min(float(days), days_between(origin, block.end))
            if last <= first:
                continue
            events.append(
                CalendarStageEvent(
                    pump_id=pump.id,
                    stage=block.stage,
                    title=pump.model,
                    subtitle=pump.po,
                    customer=pump.customer,
                    priority=pump.priority,
                    start_day=first,
                    span=last - first,
                    risk_status=risk.status if risk else None,
                )
            )
    events.sort(key=lambda event: (event.start_day, event.pump_id, event.stage.index))
    return events


__all__ = ["build_calendar_events"]
