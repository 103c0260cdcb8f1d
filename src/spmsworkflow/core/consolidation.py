"""Cross-record consolidation of individual ratings against the office record."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

import structlog

from ..schemas import (
    AdjectivalRating,
    OutputCategory,
    PerformanceRecord,
    RecordKind,
    RecordStatus,
)
from .rating import classify, output_average

UNASSIGNED_DIVISION = "Unassigned"

_SUBMITTED_STATUSES = frozenset(
    {
        RecordStatus.SUBMITTED,
        RecordStatus.REVIEWED,
        RecordStatus.APPROVED,
        RecordStatus.FINALIZED,
    }
)


@dataclass
class ConsolidationConfig:
    """Statuses whose frozen rating counts toward consolidated averages."""

    qualifying_statuses: tuple[RecordStatus, ...] = (
        RecordStatus.APPROVED,
        RecordStatus.FINALIZED,
    )

    def __post_init__(self) -> None:
        self.qualifying_statuses = tuple(RecordStatus(s) for s in self.qualifying_statuses)


@dataclass(slots=True)
class DivisionSummary:
    division: str
    record_count: int
    submitted_count: int
    rated_count: int
    average: float
    adjectival_rating: AdjectivalRating


@dataclass(slots=True)
class CategorySummary:
    category: OutputCategory
    output_count: int
    rated_count: int
    average: float
    adjectival_rating: AdjectivalRating


@dataclass(slots=True)
class ConsolidationReport:
    """Office-versus-individual rating comparison for one period."""

    period_id: str | None
    office_average: float
    office_adjectival_rating: AdjectivalRating
    global_individual_average: float
    global_adjectival_rating: AdjectivalRating
    qualifying_count: int
    violation: bool
    divisions: list[DivisionSummary] = field(default_factory=list)
    categories: list[CategorySummary] = field(default_factory=list)


class ConsolidationEngine:
    """Aggregates individual records against an office record.

    The violation flag is advisory: individual ratings averaging above the office
    rating are reported, never blocked.
    """

    def __init__(self, *, config: ConsolidationConfig | None = None) -> None:
        self._config = config or ConsolidationConfig()
        self._logger = structlog.get_logger(__name__)

    def consolidate(
        self,
        office_record: PerformanceRecord | None,
        individual_records: Iterable[PerformanceRecord],
    ) -> ConsolidationReport:
        individuals = [r for r in individual_records if r.kind is RecordKind.INDIVIDUAL]
        qualifying = [r for r in individuals if self._qualifies(r)]

        office_average = _positive(office_record.final_average) if office_record else 0.0
        global_average = _mean([r.final_average for r in qualifying])
        violation = office_average > 0 and global_average > office_average

        period_id = office_record.period_id if office_record else None
        if period_id is None and individuals:
            period_id = individuals[0].period_id

        report = ConsolidationReport(
            period_id=period_id,
            office_average=office_average,
            office_adjectival_rating=classify(office_average),
            global_individual_average=global_average,
            global_adjectival_rating=classify(global_average),
            qualifying_count=len(qualifying),
            violation=violation,
            divisions=self._division_breakdown(individuals),
            categories=self._category_breakdown(office_record) if office_record else [],
        )

        if violation:
            self._logger.warning(
                "consolidation.violation",
                period_id=period_id,
                office_average=office_average,
                global_individual_average=global_average,
            )
        return report

    def _qualifies(self, record: PerformanceRecord) -> bool:
        return (
            record.status in self._config.qualifying_statuses
            and record.final_average is not None
            and record.final_average > 0
        )

    def _division_breakdown(self, individuals: list[PerformanceRecord]) -> list[DivisionSummary]:
        grouped: dict[str, list[PerformanceRecord]] = defaultdict(list)
        for record in individuals:
            grouped[record.division or UNASSIGNED_DIVISION].append(record)

        summaries: list[DivisionSummary] = []
        for division in sorted(grouped):
            records = grouped[division]
            rated = [r.final_average for r in records if self._qualifies(r)]
            average = _mean(rated)
            summaries.append(
                DivisionSummary(
                    division=division,
                    record_count=len(records),
                    submitted_count=sum(1 for r in records if r.status in _SUBMITTED_STATUSES),
                    rated_count=len(rated),
                    average=average,
                    adjectival_rating=classify(average),
                )
            )
        return summaries

    @staticmethod
    def _category_breakdown(office_record: PerformanceRecord) -> list[CategorySummary]:
        summaries: list[CategorySummary] = []
        for category in OutputCategory:
            outputs = [o for o in office_record.outputs if o.category is category]
            averages = [output_average(o) for o in outputs]
            average = _mean(averages)
            summaries.append(
                CategorySummary(
                    category=category,
                    output_count=len(outputs),
                    rated_count=sum(1 for value in averages if value > 0),
                    average=average,
                    adjectival_rating=classify(average),
                )
            )
        return summaries


def consolidate(
    office_record: PerformanceRecord | None,
    individual_records: Iterable[PerformanceRecord],
) -> ConsolidationReport:
    """Consolidate with the default configuration."""
    return ConsolidationEngine().consolidate(office_record, individual_records)


def _positive(value: float | None) -> float:
    return value if value is not None and value > 0 else 0.0


def _mean(values: Iterable[float | None]) -> float:
    positives = [v for v in values if v is not None and v > 0]
    if not positives:
        return 0.0
    return sum(positives) / len(positives)
