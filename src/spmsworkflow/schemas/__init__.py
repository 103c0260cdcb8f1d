"""Pydantic schema definitions for performance records and awards."""

from __future__ import annotations

from .awards import (
    AWARD_TYPE_CONFIG,
    AwardRecord,
    AwardStatus,
    AwardType,
    AwardTypeInfo,
)
from .records import (
    Actor,
    AdjectivalRating,
    OutputCategory,
    OutputRating,
    PerformanceOutput,
    PerformanceRecord,
    RatingPeriod,
    RecordKind,
    RecordStatus,
    Role,
)

__all__ = [
    "AWARD_TYPE_CONFIG",
    "Actor",
    "AdjectivalRating",
    "AwardRecord",
    "AwardStatus",
    "AwardType",
    "AwardTypeInfo",
    "OutputCategory",
    "OutputRating",
    "PerformanceOutput",
    "PerformanceRecord",
    "RatingPeriod",
    "RecordKind",
    "RecordStatus",
    "Role",
]
