"""Demonstration script for the pump scheduling projection engine."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from pprint import pprint

from . import ScheduleService, StageDurations, WorkHours
from .capacity import CapacityConfig, PowderCoatVendor, default_capacity_config
from .logger import get_logger


def main() -> None:
    logger = get_logger("pump_schedule")
    config = default_capacity_config()
    schedule = ScheduleService(
        capacity_config=CapacityConfig(
            fabrication=config.fabrication,
            assembly=config.assembly,
            ship=config.ship,
            vendors=(PowderCoatVendor(id="pc-1", name="Front Range Coatings", max_pumps_per_week=2),),
            staged_for_powder_buffer_days=1,
        )
    )

    # Model catalog
    schedule.catalog.register(
        "DD-6 SAFE",
        StageDurations(fabrication=5, powder_coat=3, assembly=4, ship=2, total_days=14),
        WorkHours(fabrication=112, assembly=63, ship=8),
    )
    schedule.catalog.register(
        "HC-150",
        StageDurations(fabrication=3, powder_coat=3, assembly=2, ship=1, total_days=9),
    )

    monday = date.today() - timedelta(days=date.today().weekday())
    pumps = [
        schedule.register_pump(
            "DD-6 SAFE",
            priority="Urgent",
            promise_date=monday + timedelta(days=20),
            forecast_start=monday,
            customer="Rocky Mountain Water",
            po="PO-4471",
            serial=1201 + index,
        )
        for index in range(3)
    ]
    schedule.register_pump(
        "HC-150",
        stage="ASSEMBLY",
        priority="Normal",
        promise_date=monday + timedelta(days=3),
        forecast_start=monday - timedelta(days=7),
        customer="Delta Irrigation",
        po="PO-4502",
        serial=1188,
    )

    # Shop floor feedback
    first = pumps[0]
    schedule.move_pump_stage(first.id, "FABRICATION", moved_at=datetime.combine(monday, datetime.min.time()))
    schedule.pause_pump(first.id, at=datetime.combine(monday, datetime.min.time()) + timedelta(hours=6))
    schedule.resume_pump(first.id, at=datetime.combine(monday, datetime.min.time()) + timedelta(hours=18))

    projections = schedule.project_all()
    for pump_id, projection in projections.items():
        pump = schedule.pumps.get(pump_id)
        logger.info("Pump %s (%s) window %s", pump.serial, pump.model, projection.window)
        pprint(
            [
                (block.stage.value, block.start.isoformat(), block.end.isoformat(), block.paused_days)
                for block in projection.timeline
            ]
        )

    print("Risk by pump:")
    pprint({pump_id: result.status.value for pump_id, result in schedule.risk_report().items()})

    print("Capacity by stage:")
    pprint(schedule.capacity_summary())

    print("Calendar (next 14 days):")
    pprint(schedule.calendar_events(monday, 14)[:10])


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
