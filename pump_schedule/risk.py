"""Delivery risk classification against promise dates."""

from __future__ import annotations

import math
from datetime import datetime
from typing import List, Optional

from .domain import DateLike, Priority, Pump, RiskResult, RiskStatus
from .work_calendar import days_between, to_datetime

AT_RISK_THRESHOLD_DAYS = 3
LATE_THRESHOLD_DAYS = 0
BEHIND_SCHEDULE_LATE_DAYS = 3
ESCALATED_PRIORITIES = (Priority.URGENT, Priority.RUSH)


def calculate_risk(
    pump: Pump,
    projected_ship_date: Optional[DateLike] = None,
    today: Optional[DateLike] = None,
) -> RiskResult:
    """Classify a pump as on-track, at-risk or late.

    Days until the promise date set the first verdict; a projected ship date
    more than three days past the promise forces ``late``, one to three days
    makes it at least ``at-risk``. Priority only adds a reason.
    """

    reasons: List[str] = []
    status = RiskStatus.ON_TRACK
    days_until_promise: Optional[int] = None
    days_behind = 0
    reference = to_datetime(today) if today is not None else datetime.now()

    if pump.promise_date:
        promise = to_datetime(pump.promise_date)
        days_until_promise = math.ceil(days_between(reference, promise))
        if days_until_promise < LATE_THRESHOLD_DAYS:
            status = RiskStatus.LATE
            reasons.append(f"Overdue by {abs(days_until_promise)} day(s)")
        elif days_until_promise <= AT_RISK_THRESHOLD_DAYS:
            status = RiskStatus.AT_RISK
            reasons.append(f"Due in {days_until_promise} day(s)")

        if projected_ship_date is not None:
            days_behind = math.ceil(days_between(promise, to_datetime(projected_ship_date)))
            if days_behind > BEHIND_SCHEDULE_LATE_DAYS:
                status = RiskStatus.LATE
                reasons.append(f"Forecast {days_behind} day(s) behind promise")
            elif days_behind > 0 and status is not RiskStatus.LATE:
                status = RiskStatus.AT_RISK
                reasons.append(f"Forecast {days_behind} day(s) behind promise")

    if pump.priority in ESCALATED_PRIORITIES and status is RiskStatus.AT_RISK:
        reasons.append(f"{pump.priority.label} priority requires attention")

    return RiskResult(
        status=status,
        days_until_promise=days_until_promise,
        days_behind_schedule=days_behind,
        reasons=tuple(reasons),
    )


__all__ = ["AT_RISK_THRESHOLD_DAYS", "calculate_risk"]
