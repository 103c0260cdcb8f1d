"""Reporting pipeline: consolidation and award eligibility over exported records."""

from __future__ import annotations

import json
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeVar

import pendulum
import structlog
from pydantic import BaseModel

from . import __version__
from .core import ConsolidationEngine, EligibilityEngine
from .schemas import AwardRecord, PerformanceRecord, RecordKind

ModelT = TypeVar("ModelT", bound=BaseModel)


class RecordLoadError(ValueError):
    """Raised when a JSONL file contains invalid rows."""

    def __init__(self, errors: list[str], partial: list[Any]):
        super().__init__("Record loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Record loading failed: {self.errors}"


class JsonlLoader(Generic[ModelT]):
    """Load one pydantic model per JSON line, collecting row errors."""

    def __init__(self, model: type[ModelT]):
        self._model = model

    def load(self, path: Path) -> list[ModelT]:
        items: list[ModelT] = []
        errors: list[str] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                try:
                    items.append(self._model.model_validate(data))
                except Exception as exc:  # noqa: BLE001
                    errors.append(f"line {idx}: {exc}")
        if errors:
            raise RecordLoadError(errors, items)
        return items


class OutputWriter:
    """Persist report payloads."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, default=_json_default),
            encoding="utf-8",
        )


class ReportingPipeline:
    """Load records and awards, consolidate, list eligible staff and write the report."""

    def __init__(
        self,
        *,
        consolidation: ConsolidationEngine,
        eligibility: EligibilityEngine,
        record_loader: JsonlLoader[PerformanceRecord] | None = None,
        award_loader: JsonlLoader[AwardRecord] | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._consolidation = consolidation
        self._eligibility = eligibility
        self._records = record_loader or JsonlLoader(PerformanceRecord)
        self._awards = award_loader or JsonlLoader(AwardRecord)
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def run(
        self,
        *,
        records_path: Path,
        output_path: Path,
        awards_path: Path | None = None,
        period_id: str | None = None,
    ) -> dict[str, Any]:
        load_errors: list[str] = []
        records = self._load(self._records, records_path, load_errors)
        awards = self._load(self._awards, awards_path, load_errors) if awards_path else []

        if period_id is not None:
            records = [r for r in records if r.period_id == period_id]

        offices = [r for r in records if r.kind is RecordKind.OFFICE]
        individuals = [r for r in records if r.kind is RecordKind.INDIVIDUAL]
        if len(offices) > 1:
            self._logger.warning(
                "reporting.multiple_office_records",
                record_ids=[r.record_id for r in offices],
            )
        office = offices[0] if offices else None

        report = self._consolidation.consolidate(office, individuals)
        eligible = self._eligibility.eligible_staff(individuals, awards)
        summary = self._eligibility.summarize(awards)

        self._logger.info(
            "reporting.result",
            period_id=report.period_id,
            individual_count=len(individuals),
            qualifying_count=report.qualifying_count,
            violation=report.violation,
            eligible_count=len(eligible),
        )

        payload = {
            "metadata": {
                "period_id": report.period_id,
                "record_count": len(records),
                "award_count": len(awards),
                "errors": load_errors,
                "timestamp": pendulum.now().to_iso8601_string(),
                "app_version": __version__,
            },
            "consolidation": asdict(report),
            "eligible_staff": [asdict(item) for item in eligible],
            "awards_summary": {
                award_type.value: {**asdict(tally), "total": tally.total}
                for award_type, tally in summary.items()
            },
        }
        serialized = json.loads(json.dumps(payload, default=_json_default, ensure_ascii=False))
        self._writer.write(output_path, serialized)
        return serialized

    def _load(self, loader: JsonlLoader[Any], path: Path, errors: list[str]) -> list[Any]:
        try:
            return loader.load(path)
        except RecordLoadError as exc:
            errors.extend(f"{path.name}: {message}" for message in exc.errors)
            self._logger.warning("reporting.partial_load", path=str(path), errors=exc.errors)
            return exc.partial


def _json_default(value):  # type: ignore[override]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, pendulum.DateTime):
        return value.to_iso8601_string()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
