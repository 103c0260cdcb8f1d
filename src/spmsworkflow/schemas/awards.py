"""Award (rewards and incentives) schemas."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from .records import AdjectivalRating


class AwardType(str, Enum):
    PRAISE_AWARD = "praise_award"
    PERFORMANCE_BONUS = "performance_bonus"
    STEP_INCREMENT = "step_increment"
    CERTIFICATE_OF_RECOGNITION = "certificate_of_recognition"
    SCHOLARSHIP = "scholarship"


class AwardStatus(str, Enum):
    APPROVED = "approved"
    AWARDED = "awarded"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class AwardTypeInfo:
    label: str
    description: str
    outstanding_only: bool


AWARD_TYPE_CONFIG: dict[AwardType, AwardTypeInfo] = {
    AwardType.PRAISE_AWARD: AwardTypeInfo(
        label="PRAISE Award",
        description="Program on Awards and Incentives for Service Excellence",
        outstanding_only=True,
    ),
    AwardType.PERFORMANCE_BONUS: AwardTypeInfo(
        label="Performance Bonus",
        description="Monetary incentive based on performance rating",
        outstanding_only=False,
    ),
    AwardType.STEP_INCREMENT: AwardTypeInfo(
        label="Step Increment",
        description="Salary step advancement based on merit",
        outstanding_only=False,
    ),
    AwardType.CERTIFICATE_OF_RECOGNITION: AwardTypeInfo(
        label="Certificate of Recognition",
        description="Formal acknowledgment of service excellence",
        outstanding_only=False,
    ),
    AwardType.SCHOLARSHIP: AwardTypeInfo(
        label="Scholarship / Training Grant",
        description="Learning and development opportunity",
        outstanding_only=False,
    ),
}


class AwardRecord(BaseModel):
    """Award granted to a staff member on the basis of a rated individual record."""

    award_id: str
    staff_id: str
    award_type: AwardType
    basis_rating: AdjectivalRating
    status: AwardStatus = AwardStatus.APPROVED
    period_id: str
    record_id: str | None = None
    award_title: str = ""
    awarded_by: str | None = None
    award_date: date | None = None
    cancel_reason: str | None = None
    remarks: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")

    @property
    def is_active(self) -> bool:
        return self.status is not AwardStatus.CANCELLED
