"""In-memory collaborators used by tests and the CLI."""

from __future__ import annotations

import threading
from typing import Iterable

from ..schemas import Actor, PerformanceRecord, RatingPeriod, RecordStatus


class InMemoryRecordStore:
    """Thread-safe record store with compare-and-swap on status."""

    def __init__(self, records: Iterable[PerformanceRecord] = ()) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, PerformanceRecord] = {}
        for record in records:
            self.add(record)

    def add(self, record: PerformanceRecord) -> None:
        with self._lock:
            if record.record_id in self._records:
                raise KeyError(f"Duplicate record id: {record.record_id!r}")
            self._records[record.record_id] = record.model_copy(deep=True)

    def load(self, record_id: str) -> PerformanceRecord | None:
        with self._lock:
            stored = self._records.get(record_id)
            return stored.model_copy(deep=True) if stored is not None else None

    def compare_and_save(self, record: PerformanceRecord, expected_status: RecordStatus) -> bool:
        with self._lock:
            current = self._records.get(record.record_id)
            if current is None or current.status is not expected_status:
                return False
            self._records[record.record_id] = record.model_copy(deep=True)
            return True

    def records(self) -> list[PerformanceRecord]:
        with self._lock:
            return [record.model_copy(deep=True) for record in self._records.values()]


class InMemoryPeriodDirectory:
    """Rating periods keyed by id."""

    def __init__(self, periods: Iterable[RatingPeriod] = ()) -> None:
        self._periods = {period.period_id: period for period in periods}

    def add(self, period: RatingPeriod) -> None:
        self._periods[period.period_id] = period

    def get_period(self, period_id: str) -> RatingPeriod | None:
        return self._periods.get(period_id)

    def active_period(self) -> RatingPeriod | None:
        for period in self._periods.values():
            if period.is_active:
                return period
        return None


class StaticIdentityProvider:
    """Identity provider backed by a fixed set of actors."""

    def __init__(self, actors: Iterable[Actor] = ()) -> None:
        self._actors = {actor.user_id: actor for actor in actors}

    def add(self, actor: Actor) -> None:
        self._actors[actor.user_id] = actor

    def resolve(self, user_id: str) -> Actor | None:
        return self._actors.get(user_id)
