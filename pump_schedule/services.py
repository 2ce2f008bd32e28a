"""Service layer that exposes scheduling projections to clients."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Union
from uuid import uuid4

from .calendar_events import build_calendar_events
from .capacity import (
    CapacityConfig,
    default_capacity_config,
    update_buffer_days,
    update_department_staffing,
    update_vendor,
    weekly_stage_capacity,
)
from .catalog import ModelCatalog
from .config import Settings
from .domain import (
    CalendarStageEvent,
    DateLike,
    PauseInterval,
    Priority,
    ProjectionResult,
    Pump,
    RiskResult,
    Stage,
    StageMoveEvent,
    WorkHours,
)
from .history import apply_paused_time, days_in_previous_stage
from .projection import (
    DEFAULT_LOOKAHEAD_WEEKS,
    project_capacity_aware_timelines,
    schedule_window,
)
from .repository import PumpRepository, StageLedger
from .risk import calculate_risk
from .work_calendar import count_working_days, to_datetime

logger = logging.getLogger(__name__)

CAPACITY_STAGES = (Stage.FABRICATION, Stage.POWDER_COAT, Stage.ASSEMBLY, Stage.SHIP)


@dataclass(slots=True)
class ProjectionOptions:
    """Fine-tuning parameters used by the projection engine."""

    lookahead_weeks: int = DEFAULT_LOOKAHEAD_WEEKS
    include_paused_time: bool = True


@dataclass(slots=True)
class StageCapacitySummary:
    """Weekly capacity of one stage against the pumps waiting for it."""

    stage: Stage
    weekly_capacity: int
    pumps_in_stage: int
    pumps_upstream: int

    @property
    def overloaded(self) -> bool:
        return self.pumps_in_stage > self.weekly_capacity


class ScheduleService:
    """Facade that exposes pump scheduling use-cases to clients."""

    def __init__(
        self,
        pump_repo: Optional[PumpRepository] = None,
        ledger: Optional[StageLedger] = None,
        catalog: Optional[ModelCatalog] = None,
        capacity_config: Optional[CapacityConfig] = None,
        options: Optional[ProjectionOptions] = None,
    ) -> None:
        self.pumps = pump_repo if pump_repo is not None else PumpRepository()
        self.ledger = ledger if ledger is not None else StageLedger()
        self.catalog = catalog if catalog is not None else ModelCatalog()
        self.capacity_config = capacity_config or default_capacity_config()
        self.options = options or ProjectionOptions()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScheduleService":
        catalog = ModelCatalog.from_json(settings.catalog_path) if settings.catalog_path else None
        capacity = update_buffer_days(default_capacity_config(), settings.buffer_days)
        return cls(
            catalog=catalog,
            capacity_config=capacity,
            options=ProjectionOptions(lookahead_weeks=settings.lookahead_weeks),
        )

    # ------------------------------------------------------------------
    # Pump records
    # ------------------------------------------------------------------
    def register_pump(
        self,
        model: str,
        *,
        stage: Union[Stage, str] = Stage.QUEUE,
        priority: Union[Priority, str] = Priority.NORMAL,
        promise_date: Optional[DateLike] = None,
        forecast_start: Optional[DateLike] = None,
        forecast_end: Optional[DateLike] = None,
        powder_coat_vendor_id: Optional[str] = None,
        logged_hours: Optional[WorkHours] = None,
        customer: str = "",
        po: str = "",
        serial: Optional[int] = None,
        pump_id: Optional[str] = None,
    ) -> Pump:
        pump = Pump(
            id=pump_id or str(uuid4()),
            model=model,
            stage=stage,
            priority=priority,
            promise_date=promise_date,
            forecast_start=forecast_start,
            forecast_end=forecast_end,
            powder_coat_vendor_id=powder_coat_vendor_id,
            logged_hours=logged_hours,
            customer=customer,
            po=po,
            serial=serial,
        )
        self.pumps.add(pump)
        return pump

    def move_pump_stage(
        self,
        pump_id: str,
        to_stage: Union[Stage, str],
        *,
        moved_at: Optional[datetime] = None,
    ) -> StageMoveEvent:
        pump = self.pumps.get(pump_id)
        target = Stage.parse(to_stage, pump_id=pump_id)
        if target is pump.stage:
            raise ValueError(f"Pump {pump_id!r} is already in {target.value}")
        moved_at = moved_at or datetime.now()
        history = self.ledger.moves_for(pump_id)
        event = StageMoveEvent(
            pump_id=pump_id,
            from_stage=pump.stage,
            to_stage=target,
            occurred_at=moved_at,
            days_in_previous_stage=days_in_previous_stage(history, pump.stage, moved_at),
        )
        self.ledger.append(event)
        pump.stage = target
        self.pumps.upsert(pump)
        logger.info(
            "Pump %s moved %s -> %s", pump_id, event.from_stage.value, target.value
        )
        return event

    def pause_pump(self, pump_id: str, *, at: Optional[datetime] = None) -> PauseInterval:
        pump = self.pumps.get(pump_id)
        return self.ledger.record_pause(pump.id, pump.stage, at or datetime.now())

    def resume_pump(self, pump_id: str, *, at: Optional[datetime] = None) -> PauseInterval:
        pump = self.pumps.get(pump_id)
        return self.ledger.record_resume(pump.id, at or datetime.now())

    # ------------------------------------------------------------------
    # Capacity
    # ------------------------------------------------------------------
    def update_department_staffing(
        self,
        department: str,
        *,
        employee_count: Optional[float] = None,
        efficiency: Optional[float] = None,
        daily_man_hours: Optional[float] = None,
    ) -> CapacityConfig:
        self.capacity_config = update_department_staffing(
            self.capacity_config,
            department,
            employee_count=employee_count,
            efficiency=efficiency,
            daily_man_hours=daily_man_hours,
        )
        return self.capacity_config

    def update_vendor(
        self,
        vendor_id: str,
        *,
        name: Optional[str] = None,
        max_pumps_per_week: Optional[int] = None,
    ) -> CapacityConfig:
        self.capacity_config = update_vendor(
            self.capacity_config, vendor_id, name=name, max_pumps_per_week=max_pumps_per_week
        )
        return self.capacity_config

    def update_buffer_days(self, days: float) -> CapacityConfig:
        self.capacity_config = update_buffer_days(self.capacity_config, days)
        return self.capacity_config

    def capacity_summary(self) -> List[StageCapacitySummary]:
        """Weekly capacity per stage compared with current stage occupancy."""

        open_pumps = self.pumps.open_pumps()
        summaries: List[StageCapacitySummary] = []
        for stage in CAPACITY_STAGES:
            in_stage = [pump for pump in open_pumps if pump.stage is stage]
            upstream = [pump for pump in open_pumps if pump.stage.index < stage.index]
            reference = in_stage[0] if in_stage else None
            lead_times = self.catalog.lead_times(reference.model) if reference else None
            summaries.append(
                StageCapacitySummary(
                    stage=stage,
                    weekly_capacity=weekly_stage_capacity(stage, self.capacity_config, lead_times),
                    pumps_in_stage=len(in_stage),
                    pumps_upstream=len(upstream),
                )
            )
        return summaries

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------
    def project_all(self, *, now: Optional[DateLike] = None) -> Dict[str, ProjectionResult]:
        """Project every pump in the store in a single capacity-aware pass."""

        pumps = self.pumps.list()
        timelines = project_capacity_aware_timelines(
            pumps,
            self.capacity_config,
            self.catalog.lead_times_or_default,
            work_hours_lookup=self.catalog.work_hours,
            now=now,
            lookahead_weeks=self.options.lookahead_weeks,
        )
        results: Dict[str, ProjectionResult] = {}
        for pump in pumps:
            timeline = timelines.get(pump.id, ())
            if self.options.include_paused_time and timeline:
                timeline = apply_paused_time(
                    timeline,
                    self.ledger.moves_for(pump.id),
                    self.ledger.pauses_for(pump.id),
                )
            results[pump.id] = ProjectionResult(
                pump_id=pump.id, timeline=timeline, window=schedule_window(timeline)
            )
        return results

    def project_pump(self, pump_id: str, *, now: Optional[DateLike] = None) -> ProjectionResult:
        self.pumps.get(pump_id)
        return self.project_all(now=now)[pump_id]

    def evaluate_risk(
        self,
        pump_id: str,
        *,
        today: Optional[DateLike] = None,
        projection: Optional[ProjectionResult] = None,
    ) -> RiskResult:
        pump = self.pumps.get(pump_id)
        projection = projection or self.project_pump(pump_id, now=today)
        ship_date = projection.timeline[-1].end if projection.timeline else None
        return calculate_risk(pump, ship_date, today)

    def risk_report(self, *, today: Optional[DateLike] = None) -> Dict[str, RiskResult]:
        projections = self.project_all(now=today)
        return {
            pump_id: self.evaluate_risk(pump_id, today=today, projection=projection)
            for pump_id, projection in projections.items()
        }

    def calendar_events(
        self,
        view_start: DateLike,
        days: int,
        *,
        today: Optional[DateLike] = None,
    ) -> List[CalendarStageEvent]:
        if days <= 0:
            raise ValueError("Calendar view must span at least one day")
        projections = self.project_all(now=today)
        timelines = {pump_id: result.timeline for pump_id, result in projections.items()}
        risks: Mapping[str, RiskResult] = {
            pump_id: self.evaluate_risk(pump_id, today=today, projection=result)
            for pump_id, result in projections.items()
        }
        return build_calendar_events(
            self.pumps.list(), timelines, view_start, days, risk_by_pump=risks
        )

    def working_days_remaining(
        self,
        pump_id: str,
        *,
        today: Optional[DateLike] = None,
        holidays: Optional[List[date]] = None,
    ) -> int:
        """Working days from ``today`` until the projected ship date."""

        projection = self.project_pump(pump_id, now=today)
        if not projection.timeline:
            return 0
        start = to_datetime(today) if today is not None else datetime.now()
        end = projection.timeline[-1].end
        if end <= start:
            return 0
        return count_working_days(start, end, holidays)


__all__ = [
    "ProjectionOptions",
    "ScheduleService",
    "StageCapacitySummary",
]
