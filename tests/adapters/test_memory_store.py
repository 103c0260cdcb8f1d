from __future__ import annotations

import pytest

from spmsworkflow.adapters import (
    IdentityProvider,
    InMemoryPeriodDirectory,
    InMemoryRecordStore,
    PeriodDirectory,
    RecordStore,
    StaticIdentityProvider,
)
from spmsworkflow.schemas import PerformanceRecord, RatingPeriod, RecordStatus


def build_record(**kwargs) -> PerformanceRecord:
    defaults = {"record_id": "R-1", "subject_id": "U-1", "period_id": "P-1"}
    defaults.update(kwargs)
    return PerformanceRecord(**defaults)


def test_in_memory_collaborators_satisfy_protocols():
    assert isinstance(InMemoryRecordStore(), RecordStore)
    assert isinstance(InMemoryPeriodDirectory(), PeriodDirectory)
    assert isinstance(StaticIdentityProvider(), IdentityProvider)


def test_compare_and_save_requires_unchanged_status():
    store = InMemoryRecordStore([build_record()])

    submitted = build_record(status=RecordStatus.SUBMITTED)
    assert store.compare_and_save(submitted, RecordStatus.DRAFT) is True
    assert store.compare_and_save(build_record(status=RecordStatus.RETURNED), RecordStatus.DRAFT) is False
    assert store.load("R-1").status is RecordStatus.SUBMITTED


def test_compare_and_save_does_not_insert():
    store = InMemoryRecordStore()

    assert store.compare_and_save(build_record(), RecordStatus.DRAFT) is False
    assert store.load("R-1") is None


def test_load_returns_isolated_copies():
    store = InMemoryRecordStore([build_record()])

    loaded = store.load("R-1")
    loaded.review_remarks = "mutated"

    assert store.load("R-1").review_remarks is None


def test_duplicate_add_is_rejected():
    store = InMemoryRecordStore([build_record()])

    with pytest.raises(KeyError):
        store.add(build_record())


def test_period_directory_active_period():
    directory = InMemoryPeriodDirectory(
        [RatingPeriod(period_id="P-1", is_active=False), RatingPeriod(period_id="P-2", is_active=True)]
    )

    assert directory.active_period().period_id == "P-2"
    assert directory.get_period("P-9") is None
