"""Core engines: rating, workflow, consolidation and award eligibility."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .consolidation import (
    CategorySummary,
    ConsolidationConfig,
    ConsolidationEngine,
    ConsolidationReport,
    DivisionSummary,
    consolidate,
)
from .eligibility import (
    AwardScope,
    AwardTally,
    EligibilityConfig,
    EligibilityEngine,
    EligibleStaff,
    eligibility,
)
from .errors import (
    AwardResult,
    ConcurrencyConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    TransitionResult,
    ValidationError,
    WorkflowError,
)
from .rating import classify, output_average, record_average
from .workflow import Action, WorkflowEngine, WorkflowPolicy

__all__ = [
    "Action",
    "AwardResult",
    "AwardScope",
    "AwardTally",
    "CategorySummary",
    "ConcurrencyConflictError",
    "ConsolidationConfig",
    "ConsolidationEngine",
    "ConsolidationReport",
    "DivisionSummary",
    "EligibilityConfig",
    "EligibilityEngine",
    "EligibleStaff",
    "InvalidTransitionError",
    "NotFoundError",
    "PermissionDeniedError",
    "TransitionResult",
    "ValidationError",
    "WorkflowEngine",
    "WorkflowError",
    "WorkflowPolicy",
    "classify",
    "consolidate",
    "eligibility",
    "output_average",
    "record_average",
]
