"""Award eligibility derived from frozen individual ratings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, Iterable

import pendulum
import structlog

from ..schemas import (
    AWARD_TYPE_CONFIG,
    AdjectivalRating,
    AwardRecord,
    AwardStatus,
    AwardType,
    PerformanceRecord,
    RecordKind,
    RecordStatus,
)
from .errors import AwardResult, InvalidTransitionError, ValidationError, WorkflowError

QUALIFYING_RATINGS: frozenset[AdjectivalRating] = frozenset(
    {AdjectivalRating.OUTSTANDING, AdjectivalRating.VERY_SATISFACTORY}
)


class AwardScope(str, Enum):
    """Which existing awards block a new award of the same type."""

    PERIOD = "period"
    LIFETIME = "lifetime"


@dataclass
class EligibilityConfig:
    scope: AwardScope = AwardScope.PERIOD
    eligible_statuses: tuple[RecordStatus, ...] = (
        RecordStatus.APPROVED,
        RecordStatus.FINALIZED,
    )

    def __post_init__(self) -> None:
        self.scope = AwardScope(self.scope)
        self.eligible_statuses = tuple(RecordStatus(s) for s in self.eligible_statuses)


@dataclass(slots=True)
class EligibleStaff:
    staff_id: str
    record_id: str
    period_id: str
    division: str | None
    final_average: float
    adjectival_rating: AdjectivalRating
    eligible_awards: list[AwardType] = field(default_factory=list)
    existing_awards: list[AwardType] = field(default_factory=list)


@dataclass(slots=True)
class AwardTally:
    approved: int = 0
    awarded: int = 0
    cancelled: int = 0

    @property
    def total(self) -> int:
        return self.approved + self.awarded + self.cancelled


class EligibilityEngine:
    """Computes eligible award types and drives the award lifecycle."""

    def __init__(
        self,
        *,
        config: EligibilityConfig | None = None,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or EligibilityConfig()
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    def eligible_award_types(
        self,
        rating: AdjectivalRating | str | None,
        existing_awards: Iterable[AwardRecord],
        *,
        staff_id: str | None = None,
        period_id: str | None = None,
    ) -> list[AwardType]:
        if rating is None:
            return []
        try:
            rating = AdjectivalRating(rating)
        except ValueError:
            self._logger.warning("awards.unknown_rating", rating=str(rating), staff_id=staff_id)
            return []
        if rating not in QUALIFYING_RATINGS:
            return []

        held = self._held_types(existing_awards, staff_id=staff_id, period_id=period_id)
        eligible: list[AwardType] = []
        for award_type, info in AWARD_TYPE_CONFIG.items():
            if info.outstanding_only and rating is not AdjectivalRating.OUTSTANDING:
                continue
            if award_type in held:
                continue
            eligible.append(award_type)
        return eligible

    def eligible_staff(
        self,
        records: Iterable[PerformanceRecord],
        awards: Iterable[AwardRecord],
    ) -> list[EligibleStaff]:
        """List staff rated Outstanding or Very Satisfactory, with what they may still receive."""
        awards = list(awards)
        staff: list[EligibleStaff] = []
        for record in records:
            if not self._record_qualifies(record):
                continue
            if record.adjectival_rating not in QUALIFYING_RATINGS:
                continue
            held = self._held_types(awards, staff_id=record.subject_id, period_id=record.period_id)
            staff.append(
                EligibleStaff(
                    staff_id=record.subject_id,
                    record_id=record.record_id,
                    period_id=record.period_id,
                    division=record.division,
                    final_average=record.final_average or 0.0,
                    adjectival_rating=record.adjectival_rating,
                    eligible_awards=self.eligible_award_types(
                        record.adjectival_rating,
                        awards,
                        staff_id=record.subject_id,
                        period_id=record.period_id,
                    ),
                    existing_awards=sorted(held, key=lambda t: t.value),
                )
            )
        return staff

    def grant(
        self,
        record: PerformanceRecord,
        award_type: AwardType | str,
        existing_awards: Iterable[AwardRecord],
        *,
        award_id: str,
        awarded_by: str,
        award_title: str | None = None,
        remarks: str | None = None,
    ) -> AwardResult:
        """Create an approved award for the record's subject after re-checking eligibility."""
        try:
            try:
                award_type = AwardType(award_type)
            except ValueError as exc:
                raise ValidationError(f"Unknown award type {award_type!r}", field="award_type") from exc
            if not self._record_qualifies(record):
                raise ValidationError(
                    f"Record {record.record_id!r} has no frozen individual rating",
                    field="record_id",
                )
            eligible = self.eligible_award_types(
                record.adjectival_rating,
                existing_awards,
                staff_id=record.subject_id,
                period_id=record.period_id,
            )
            if award_type not in eligible:
                raise ValidationError(
                    f"Staff {record.subject_id!r} is not eligible for {award_type.value}",
                    field="award_type",
                    rating=record.adjectival_rating.value if record.adjectival_rating else None,
                )
        except WorkflowError as exc:
            self._logger.warning("awards.rejected", record_id=record.record_id, code=exc.code, reason=exc.message)
            return AwardResult(error=exc)

        award = AwardRecord(
            award_id=award_id,
            staff_id=record.subject_id,
            award_type=award_type,
            basis_rating=record.adjectival_rating,
            status=AwardStatus.APPROVED,
            period_id=record.period_id,
            record_id=record.record_id,
            award_title=award_title or AWARD_TYPE_CONFIG[award_type].label,
            awarded_by=awarded_by,
            remarks=remarks,
            created_at=self._now_provider(),
        )
        self._logger.info(
            "awards.granted",
            award_id=award_id,
            staff_id=award.staff_id,
            award_type=award_type.value,
        )
        return AwardResult(award=award)

    def mark_awarded(self, award: AwardRecord, award_date: date | None) -> AwardResult:
        try:
            self._require_approved(award)
            if award_date is None:
                raise ValidationError("Award date is required", field="award_date")
        except WorkflowError as exc:
            return AwardResult(error=exc)
        updated = award.model_copy(update={"status": AwardStatus.AWARDED, "award_date": award_date})
        self._logger.info("awards.awarded", award_id=award.award_id, award_date=award_date.isoformat())
        return AwardResult(award=updated)

    def cancel(self, award: AwardRecord, reason: str | None) -> AwardResult:
        try:
            self._require_approved(award)
            if not (reason or "").strip():
                raise ValidationError("A cancellation reason is required", field="reason")
        except WorkflowError as exc:
            return AwardResult(error=exc)
        updated = award.model_copy(update={"status": AwardStatus.CANCELLED, "cancel_reason": reason.strip()})
        self._logger.info("awards.cancelled", award_id=award.award_id)
        return AwardResult(award=updated)

    @staticmethod
    def summarize(awards: Iterable[AwardRecord]) -> dict[AwardType, AwardTally]:
        summary: dict[AwardType, AwardTally] = {}
        for award in awards:
            tally = summary.setdefault(award.award_type, AwardTally())
            if award.status is AwardStatus.APPROVED:
                tally.approved += 1
            elif award.status is AwardStatus.AWARDED:
                tally.awarded += 1
            else:
                tally.cancelled += 1
        return summary

    def _record_qualifies(self, record: PerformanceRecord) -> bool:
        return (
            record.kind is RecordKind.INDIVIDUAL
            and record.status in self._config.eligible_statuses
            and record.is_rated
        )

    def _held_types(
        self,
        awards: Iterable[AwardRecord],
        *,
        staff_id: str | None,
        period_id: str | None,
    ) -> set[AwardType]:
        held: set[AwardType] = set()
        for award in awards:
            if not award.is_active:
                continue
            if staff_id is not None and award.staff_id != staff_id:
                continue
            if (
                self._config.scope is AwardScope.PERIOD
                and period_id is not None
                and award.period_id != period_id
            ):
                continue
            held.add(award.award_type)
        return held

    @staticmethod
    def _require_approved(award: AwardRecord) -> None:
        if award.status is not AwardStatus.APPROVED:
            raise InvalidTransitionError(
                f"Award {award.award_id!r} is already {award.status.value}",
                status=award.status.value,
            )


def eligibility(
    rating: AdjectivalRating | str | None,
    existing_awards: Iterable[AwardRecord],
    *,
    scope: AwardScope = AwardScope.PERIOD,
    staff_id: str | None = None,
    period_id: str | None = None,
) -> list[AwardType]:
    """Eligible award types for one rating given the awards already held."""
    engine = EligibilityEngine(config=EligibilityConfig(scope=scope))
    return engine.eligible_award_types(
        rating, existing_awards, staff_id=staff_id, period_id=period_id
    )
