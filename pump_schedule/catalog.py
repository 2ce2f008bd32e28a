"""Model catalog providing base lead times and labor content per pump model."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .domain import (
    MIN_STAGE_DAYS,
    InvalidScheduleInputError,
    StageDurations,
    WorkHours,
)

logger = logging.getLogger(__name__)

DEFAULT_STAGE_DURATIONS = StageDurations(
    fabrication=MIN_STAGE_DAYS,
    powder_coat=MIN_STAGE_DAYS,
    assembly=MIN_STAGE_DAYS,
    ship=MIN_STAGE_DAYS,
    total_days=4 * MIN_STAGE_DAYS,
)


class ModelCatalog:
    """Lookup of ``StageDurations`` and ``WorkHours`` keyed by model code."""

    def __init__(
        self,
        lead_times: Optional[Mapping[str, StageDurations]] = None,
        work_hours: Optional[Mapping[str, WorkHours]] = None,
    ) -> None:
        self._lead_times: Dict[str, StageDurations] = dict(lead_times or {})
        self._work_hours: Dict[str, WorkHours] = dict(work_hours or {})

    def __contains__(self, model: object) -> bool:
        return model in self._lead_times

    def __len__(self) -> int:
        return len(self._lead_times)

    def models(self) -> List[str]:
        return sorted(self._lead_times)

    def register(
        self,
        model: str,
        lead_times: StageDurations,
        work_hours: Optional[WorkHours] = None,
    ) -> None:
        self._lead_times[model] = lead_times
        if work_hours is not None:
            self._work_hours[model] = work_hours

    def lead_times(self, model: str) -> Optional[StageDurations]:
        return self._lead_times.get(model)

    def lead_times_or_default(self, model: str) -> StageDurations:
        """Return the model's lead times, or the minimal default for unknown models."""

        lead_times = self._lead_times.get(model)
        if lead_times is None:
            logger.warning("Model %r not in catalog, using default lead times", model)
            return DEFAULT_STAGE_DURATIONS
        return lead_times

    def work_hours(self, model: str) -> Optional[WorkHours]:
        return self._work_hours.get(model)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "ModelCatalog":
        """Build a catalog from legacy catalog export records.

        Legacy records carry a ``testing`` lead time which is the ship stage
        duration, and separate ``testing``/``shipping`` work hours which are
        merged into the ship stage.
        """

        catalog = cls()
        for record in records:
            model = record.get("model")
            if not model:
                raise InvalidScheduleInputError("catalog record without model", field="model")
            raw_lead = record.get("lead_times") or {}
            lead_times = StageDurations(
                fabrication=raw_lead.get("fabrication"),
                powder_coat=raw_lead.get("powder_coat"),
                assembly=raw_lead.get("assembly"),
                ship=raw_lead.get("ship", raw_lead.get("testing")),
                total_days=raw_lead.get("total_days"),
            )
            raw_hours = record.get("work_hours")
            work_hours = None
            if raw_hours:
                ship_hours = raw_hours.get("ship")
                if ship_hours is None:
                    ship_hours = (raw_hours.get("testing") or 0.0) + (
                        raw_hours.get("shipping") or 0.0
                    )
                work_hours = WorkHours(
                    fabrication=raw_hours.get("fabrication") or 0.0,
                    assembly=raw_hours.get("assembly") or 0.0,
                    ship=ship_hours,
                )
            catalog.register(model, lead_times, work_hours)
        return catalog

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "ModelCatalog":
        with open(path, encoding="utf-8") as handle:
            payload = json.load(handle)
        records = payload.get("models", []) if isinstance(payload, dict) else payload
        catalog = cls.from_records(records)
        logger.info("Loaded %d models from %s", len(catalog), path)
        return catalog


__all__ = ["DEFAULT_STAGE_DURATIONS", "ModelCatalog"]
