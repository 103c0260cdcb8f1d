"""Collaborator contracts consumed by the engines, with in-memory implementations."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ..schemas import Actor, PerformanceRecord, RatingPeriod, RecordStatus
from .memory import InMemoryPeriodDirectory, InMemoryRecordStore, StaticIdentityProvider


@runtime_checkable
class RecordStore(Protocol):
    """Persistent storage for performance records.

    ``compare_and_save`` must write the record only when the stored status still
    equals ``expected_status`` and report whether the write happened.
    """

    def load(self, record_id: str) -> PerformanceRecord | None:
        """Return the stored record, or None when it does not exist."""

    def compare_and_save(self, record: PerformanceRecord, expected_status: RecordStatus) -> bool:
        """Persist ``record`` if the stored status is unchanged."""


@runtime_checkable
class PeriodDirectory(Protocol):
    """Lookup of rating periods."""

    def get_period(self, period_id: str) -> RatingPeriod | None:
        """Return the rating period, or None when unknown."""


@runtime_checkable
class IdentityProvider(Protocol):
    """Resolve a user id to the acting user's role and division."""

    def resolve(self, user_id: str) -> Actor | None:
        """Return the actor, or None when the user is unknown."""


@runtime_checkable
class DocumentRenderer(Protocol):
    """Formats a finalized record into a binary document (PDF, XLSX, ...)."""

    def render(self, payload: dict[str, Any]) -> bytes:
        """Render the prepared payload."""


__all__ = [
    "DocumentRenderer",
    "IdentityProvider",
    "InMemoryPeriodDirectory",
    "InMemoryRecordStore",
    "PeriodDirectory",
    "RecordStore",
    "StaticIdentityProvider",
]
