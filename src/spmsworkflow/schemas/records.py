"""Performance record schemas shared by the workflow, consolidation and award engines."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field


class Role(str, Enum):
    """Portal roles, as stored on user profiles."""

    HEAD_OF_OFFICE = "head_of_office"
    ADMIN_STAFF = "admin_staff"
    DIVISION_CHIEF = "division_chief"
    PROJECT_STAFF = "project_staff"


HR_MANAGERS: frozenset[Role] = frozenset({Role.HEAD_OF_OFFICE, Role.ADMIN_STAFF})
REVIEWERS: frozenset[Role] = HR_MANAGERS | {Role.DIVISION_CHIEF}


class RecordKind(str, Enum):
    INDIVIDUAL = "individual"
    OFFICE = "office"


class RecordStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    FINALIZED = "finalized"
    RETURNED = "returned"


class OutputCategory(str, Enum):
    STRATEGIC_PRIORITY = "strategic_priority"
    CORE_FUNCTION = "core_function"
    SUPPORT_FUNCTION = "support_function"


class AdjectivalRating(str, Enum):
    """Qualitative label derived from a numeric average."""

    OUTSTANDING = "Outstanding"
    VERY_SATISFACTORY = "Very Satisfactory"
    SATISFACTORY = "Satisfactory"
    UNSATISFACTORY = "Unsatisfactory"
    POOR = "Poor"
    NOT_APPLICABLE = "N/A"


def _blank_rating_to_none(value: object) -> object:
    if isinstance(value, str):
        value = value.strip()
        if value in ("", "0", "0.0"):
            return None
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return None
    return value


def _check_rating_step(value: float | None) -> float | None:
    if value is None:
        return None
    if not 1 <= value <= 5:
        raise ValueError("rating must be between 1 and 5")
    if (value * 2) != int(value * 2):
        raise ValueError("rating must be in 0.5 increments")
    return value


Rating = Annotated[
    float | None,
    BeforeValidator(_blank_rating_to_none),
    AfterValidator(_check_rating_step),
]


class OutputRating(BaseModel):
    """Q/E/T scores supplied by a rater for one output."""

    rating_q: Rating = None
    rating_e: Rating = None
    rating_t: Rating = None

    model_config = ConfigDict(extra="forbid")


class PerformanceOutput(BaseModel):
    """One major final output with its success indicator and Q/E/T ratings."""

    output_id: str
    category: OutputCategory = OutputCategory.CORE_FUNCTION
    title: str = ""
    indicator: str = ""
    accomplishments: str | None = None
    remarks: str | None = None
    rating_q: Rating = None
    rating_e: Rating = None
    rating_t: Rating = None
    average: float = 0.0
    sort_order: int = 0

    model_config = ConfigDict(extra="forbid")


class RatingPeriod(BaseModel):
    """Rating period (SPMS cycle) a record belongs to."""

    period_id: str
    name: str = ""
    is_active: bool = False

    model_config = ConfigDict(extra="forbid")


class Actor(BaseModel):
    """Acting user as resolved by the identity collaborator."""

    user_id: str
    role: Role
    division: str | None = None

    model_config = ConfigDict(extra="forbid")

    @property
    def is_hr_manager(self) -> bool:
        return self.role in HR_MANAGERS

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWERS


class PerformanceRecord(BaseModel):
    """Individual (IPCR) or office (OPCR) performance commitment and review record."""

    record_id: str
    kind: RecordKind = RecordKind.INDIVIDUAL
    subject_id: str
    division: str | None = None
    period_id: str
    outputs: list[PerformanceOutput] = Field(default_factory=list)
    status: RecordStatus = RecordStatus.DRAFT

    final_average: float | None = None
    adjectival_rating: AdjectivalRating | None = None

    submitted_by: str | None = None
    submitted_at: datetime | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    finalized_by: str | None = None
    finalized_at: datetime | None = None
    returned_by: str | None = None
    returned_at: datetime | None = None

    review_remarks: str | None = None
    approval_comments: str | None = None
    return_reason: str | None = None

    model_config = ConfigDict(extra="forbid")

    def output(self, output_id: str) -> PerformanceOutput | None:
        for item in self.outputs:
            if item.output_id == output_id:
                return item
        return None

    @property
    def is_rated(self) -> bool:
        return self.final_average is not None and self.adjectival_rating is not None
