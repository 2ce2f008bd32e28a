"""FastAPI-based JSON interface for the pump scheduling service."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import JSONResponse

from ..capacity import DEPARTMENTS
from ..config import Settings, load_settings
from ..domain import InvalidScheduleInputError, Priority, Stage, StageDurations, WorkHours
from ..logger import get_logger
from ..repository import RecordNotFoundError
from ..services import ScheduleService

DEFAULT_CALENDAR_DAYS = 42


def create_app(
    service: Optional[ScheduleService] = None,
    settings: Optional[Settings] = None,
    *,
    demo_data: bool = True,
) -> FastAPI:
    settings = settings or load_settings()
    logger = get_logger("pump_schedule", level=settings.log_level, log_file=settings.log_file)
    if service is None:
        service = ScheduleService.from_settings(settings)
        if demo_data:
            ensure_demo_data(service)

    app = FastAPI(title="Pump Production Schedule")
    app.state.schedule_service = service
    logger.info("Schedule service ready with %d pumps", len(service.pumps))

    @app.exception_handler(InvalidScheduleInputError)
    async def invalid_input_handler(request: Request, exc: InvalidScheduleInputError):
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "pump_id": exc.pump_id, "field": exc.field},
        )

    def lookup_pump(service: ScheduleService, pump_id: str):
        try:
            return service.pumps.get(pump_id)
        except RecordNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/pumps")
    async def list_pumps(request: Request, stage: Optional[str] = None):
        service: ScheduleService = request.app.state.schedule_service
        pumps = service.pumps.list()
        if stage:
            wanted = Stage.parse(stage)
            pumps = [pump for pump in pumps if pump.stage is wanted]
        return sorted(pumps, key=lambda pump: (-int(pump.priority), pump.id))

    @app.get("/pumps/{pump_id}/projection")
    async def pump_projection(pump_id: str, request: Request):
        service: ScheduleService = request.app.state.schedule_service
        lookup_pump(service, pump_id)
        return service.project_pump(pump_id)

    @app.get("/pumps/{pump_id}/risk")
    async def pump_risk(pump_id: str, request: Request):
        service: ScheduleService = request.app.state.schedule_service
        lookup_pump(service, pump_id)
        return service.evaluate_risk(pump_id)

    @app.get("/projections")
    async def projections(request: Request):
        service: ScheduleService = request.app.state.schedule_service
        return list(service.project_all().values())

    @app.get("/calendar")
    async def calendar(
        request: Request,
        view_start: Optional[date] = None,
        days: int = DEFAULT_CALENDAR_DAYS,
    ):
        service: ScheduleService = request.app.state.schedule_service
        if days <= 0:
            raise HTTPException(status_code=400, detail="days must be positive")
        return service.calendar_events(view_start or date.today(), days)

    @app.get("/capacity")
    async def capacity(request: Request):
        service: ScheduleService = request.app.state.schedule_service
        return {
            "config": service.capacity_config,
            "stages": [
                {
                    "stage": summary.stage,
                    "weekly_capacity": summary.weekly_capacity,
                    "pumps_in_stage": summary.pumps_in_stage,
                    "pumps_upstream": summary.pumps_upstream,
                    "overloaded": summary.overloaded,
                }
                for summary in service.capacity_summary()
            ],
        }

    @app.post("/capacity/{department}")
    async def update_capacity(
        department: str,
        request: Request,
        employee_count: Optional[float] = Form(None),
        efficiency: Optional[float] = Form(None),
        daily_man_hours: Optional[float] = Form(None),
    ):
        service: ScheduleService = request.app.state.schedule_service
        if department not in DEPARTMENTS:
            raise HTTPException(status_code=404, detail=f"Unknown department {department!r}")
        config = service.update_department_staffing(
            department,
            employee_count=employee_count,
            efficiency=efficiency,
            daily_man_hours=daily_man_hours,
        )
        return getattr(config, department)

    return app


def ensure_demo_data(service: ScheduleService) -> None:
    if len(service.pumps) > 0:
        return

    if len(service.catalog) == 0:
        service.catalog.register(
            "DD-6 SAFE",
            StageDurations(fabrication=5, powder_coat=3, assembly=4, ship=2, total_days=14),
            WorkHours(fabrication=112, assembly=63, ship=8),
        )
        service.catalog.register(
            "HC-150",
            StageDurations(fabrication=3, powder_coat=3, assembly=2, ship=1, total_days=9),
            WorkHours(fabrication=56, assembly=30, ship=4),
        )

    today = date.today()
    service.register_pump(
        "DD-6 SAFE",
        stage=Stage.FABRICATION,
        priority=Priority.HIGH,
        promise_date=today + timedelta(days=21),
        forecast_start=today - timedelta(days=2),
        powder_coat_vendor_id="pc-1",
        customer="Rocky Mountain Water",
        po="PO-4471",
        serial=1201,
    )
    service.register_pump(
        "DD-6 SAFE",
        stage=Stage.QUEUE,
        priority=Priority.NORMAL,
        promise_date=today + timedelta(days=30),
        customer="Rocky Mountain Water",
        po="PO-4471",
        serial=1202,
    )
    service.register_pump(
        "HC-150",
        stage=Stage.ASSEMBLY,
        priority=Priority.RUSH,
        promise_date=today + timedelta(days=2),
        forecast_end=today + timedelta(days=4),
        customer="Delta Irrigation",
        po="PO-4502",
        serial=1188,
    )


__all__ = ["create_app", "ensure_demo_data"]
