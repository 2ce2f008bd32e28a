"""In-memory pump store and stage ledger consumed by the scheduling service."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterator, List, MutableMapping, Optional

from .domain import PauseInterval, Pump, Stage, StageMoveEvent


class RepositoryError(RuntimeError):
    """Base exception for repository errors."""


class DuplicateRecordError(RepositoryError):
    """Raised when attempting to insert a pump that already exists."""


class RecordNotFoundError(RepositoryError):
    """Raised when a requested pump is missing."""


class PumpRepository:
    """Pump records keyed by pump id."""

    def __init__(self) -> None:
        self._pumps: MutableMapping[str, Pump] = {}

    def __contains__(self, pump_id: object) -> bool:
        return pump_id in self._pumps

    def __len__(self) -> int:
        return len(self._pumps)

    def __iter__(self) -> Iterator[Pump]:
        return iter(self._pumps.values())

    def add(self, pump: Pump) -> None:
        if pump.id in self._pumps:
            raise DuplicateRecordError(f"Pump {pump.id!r} already exists")
        self._pumps[pump.id] = pump

    def upsert(self, pump: Pump) -> None:
        self._pumps[pump.id] = pump

    def get(self, pump_id: str) -> Pump:
        try:
            return self._pumps[pump_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Pump {pump_id!r} not found") from exc

    def remove(self, pump_id: str) -> None:
        if pump_id not in self._pumps:
            raise RecordNotFoundError(f"Pump {pump_id!r} not found")
        del self._pumps[pump_id]

    def list(self) -> List[Pump]:
        return list(self._pumps.values())

    def in_stage(self, stage: Stage) -> List[Pump]:
        return [pump for pump in self._pumps.values() if pump.stage is stage]

    def open_pumps(self) -> List[Pump]:
        return [pump for pump in self._pumps.values() if not pump.stage.is_terminal]


class StageLedger:
    """Append-only record of stage transitions and pauses."""

    def __init__(self) -> None:
        self._moves: List[StageMoveEvent] = []
        self._pauses: Dict[str, List[PauseInterval]] = {}

    def __len__(self) -> int:
        return len(self._moves)

    def append(self, event: StageMoveEvent) -> None:
        self._moves.append(event)

    def moves_for(self, pump_id: str) -> List[StageMoveEvent]:
        return sorted(
            (event for event in self._moves if event.pump_id == pump_id),
            key=lambda event: event.occurred_at,
        )

    def by_date_range(self, start: datetime, end: datetime) -> List[StageMoveEvent]:
        return [event for event in self._moves if start <= event.occurred_at <= end]

    def all(self) -> List[StageMoveEvent]:
        return list(self._moves)

    def open_pause(self, pump_id: str) -> Optional[PauseInterval]:
        for pause in self._pauses.get(pump_id, []):
            if pause.is_open:
                return pause
        return None

    def record_pause(self, pump_id: str, stage: Stage, paused_at: datetime) -> PauseInterval:
        if self.open_pause(pump_id) is not None:
            raise RepositoryError(f"Pump {pump_id!r} is already paused")
        pause = PauseInterval(pump_id=pump_id, stage=stage, paused_at=paused_at)
        self._pauses.setdefault(pump_id, []).append(pause)
        return pause

    def record_resume(self, pump_id: str, resumed_at: datetime) -> PauseInterval:
        pauses = self._pauses.get(pump_id, [])
        for index, pause in enumerate(pauses):
            if pause.is_open:
                closed = replace(pause, resumed_at=resumed_at)
                pauses[index] = closed
                return closed
        raise RecordNotFoundError(f"Pump {pump_id!r} is not paused")

    def pauses_for(self, pump_id: str) -> List[PauseInterval]:
        return list(self._pauses.get(pump_id, []))

    def clear(self) -> None:
        self._moves.clear()
        self._pauses.clear()


__all__ = [
    "DuplicateRecordError",
    "PumpRepository",
    "RecordNotFoundError",
    "RepositoryError",
    "StageLedger",
]
