from __future__ import annotations

import pytest

from builders import build_office_record
from spmsworkflow.core import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from spmsworkflow.schemas import AdjectivalRating, RecordStatus

OFFICE_RATINGS = {
    "SP-1": {"rating_q": 5, "rating_e": 4, "rating_t": 3},
    "CF-1": {"rating_q": 3, "rating_e": 3},
}


def test_office_submit_requires_hr_manager(harness):
    harness.add(build_office_record())

    denied = harness.engine.submit("OPCR-1", "U-chief")
    assert isinstance(denied.error, PermissionDeniedError)

    assert harness.engine.submit("OPCR-1", "U-admin").ok
    assert harness.current("OPCR-1").status is RecordStatus.SUBMITTED


def test_office_review_updates_ratings_and_freezes(harness):
    harness.add(build_office_record(status=RecordStatus.SUBMITTED))

    result = harness.engine.review("OPCR-1", "U-head", "Consolidated.", OFFICE_RATINGS)

    assert result.ok
    record = harness.current("OPCR-1")
    assert record.status is RecordStatus.REVIEWED
    averages = {o.output_id: o.average for o in record.outputs}
    assert averages == {"SP-1": 4.0, "CF-1": 3.0, "SF-1": 0.0}
    assert record.final_average == pytest.approx(3.5)
    assert record.adjectival_rating is AdjectivalRating.VERY_SATISFACTORY


def test_office_review_requires_ratings(harness):
    harness.add(build_office_record(status=RecordStatus.SUBMITTED))

    result = harness.engine.review("OPCR-1", "U-head", "Consolidated.")

    assert isinstance(result.error, ValidationError)
    assert result.error.field == "output_ratings"


def test_office_review_requires_remarks(harness):
    harness.add(build_office_record(status=RecordStatus.SUBMITTED))

    result = harness.engine.review("OPCR-1", "U-head", "   ", OFFICE_RATINGS)

    assert isinstance(result.error, ValidationError)
    assert result.error.field == "remarks"


def test_office_review_is_all_or_nothing(harness):
    original = harness.add(build_office_record(status=RecordStatus.SUBMITTED))

    ratings = dict(OFFICE_RATINGS, **{"SF-1": {"rating_q": 7}})
    invalid = harness.engine.review("OPCR-1", "U-head", "Consolidated.", ratings)
    assert isinstance(invalid.error, ValidationError)

    missing = harness.engine.review("OPCR-1", "U-head", "Consolidated.", {"XX-1": {"rating_q": 4}})
    assert isinstance(missing.error, NotFoundError)

    assert harness.current("OPCR-1") == original


def test_office_return_reason_boundary(harness):
    harness.add(build_office_record(status=RecordStatus.SUBMITTED))

    short = harness.engine.return_record("OPCR-1", "U-admin", "r" * 9)
    assert isinstance(short.error, ValidationError)

    assert harness.engine.return_record("OPCR-1", "U-admin", "r" * 10).ok
    assert harness.current("OPCR-1").status is RecordStatus.RETURNED


def test_office_cannot_be_returned_after_review(harness):
    harness.add(
        build_office_record(
            status=RecordStatus.REVIEWED,
            final_average=3.5,
            adjectival_rating=AdjectivalRating.VERY_SATISFACTORY,
        )
    )

    result = harness.engine.return_record("OPCR-1", "U-admin", "Needs another pass.")

    assert isinstance(result.error, InvalidTransitionError)


def test_office_has_no_approve_step(harness):
    harness.add(build_office_record(status=RecordStatus.REVIEWED))

    result = harness.engine.approve("OPCR-1", "U-head", "Approved")

    assert isinstance(result.error, InvalidTransitionError)


def test_office_finalize_by_head_of_office_only(harness):
    harness.add(
        build_office_record(
            status=RecordStatus.REVIEWED,
            final_average=3.5,
            adjectival_rating=AdjectivalRating.VERY_SATISFACTORY,
        )
    )

    denied = harness.engine.finalize("OPCR-1", "U-admin", confirm=True)
    assert isinstance(denied.error, PermissionDeniedError)

    result = harness.engine.finalize("OPCR-1", "U-head", confirm=True)
    assert result.ok
    assert harness.current("OPCR-1").status is RecordStatus.FINALIZED
