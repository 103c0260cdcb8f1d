"""Typed workflow errors and the result wrappers returned across the library boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..schemas import AwardRecord, PerformanceRecord


class WorkflowError(Exception):
    """Base class for errors reported by the engines."""

    code = "workflow_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


class ValidationError(WorkflowError):
    """A transition precondition is not met. Retryable after correction."""

    code = "validation_error"

    def __init__(self, message: str, *, field: str | None = None, **details: Any) -> None:
        super().__init__(message, field=field, **details)
        self.field = field


class InvalidTransitionError(WorkflowError):
    """The current status does not permit the requested action."""

    code = "invalid_transition"


class ConcurrencyConflictError(WorkflowError):
    """The record changed status between read and commit."""

    code = "concurrency_conflict"


class NotFoundError(WorkflowError):
    """A referenced record, period or output does not exist."""

    code = "not_found"


class PermissionDeniedError(WorkflowError):
    """The acting user's role may not perform the action on this record."""

    code = "permission_denied"


@dataclass(slots=True)
class TransitionResult:
    """Outcome of a workflow operation: either the committed record or an error."""

    record: PerformanceRecord | None = None
    error: WorkflowError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> PerformanceRecord:
        if self.error is not None:
            raise self.error
        assert self.record is not None
        return self.record


@dataclass(slots=True)
class AwardResult:
    """Outcome of an award operation."""

    award: AwardRecord | None = None
    error: WorkflowError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> AwardRecord:
        if self.error is not None:
            raise self.error
        assert self.award is not None
        return self.award
