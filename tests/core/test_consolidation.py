from __future__ import annotations

import pytest

from builders import build_office_record, build_output, build_record
from spmsworkflow.core import ConsolidationConfig, ConsolidationEngine, consolidate
from spmsworkflow.schemas import AdjectivalRating, OutputCategory, RecordStatus


def rated(record_id: str, average: float, *, division: str | None = "Assessment", status=RecordStatus.APPROVED):
    return build_record(
        record_id=record_id,
        subject_id=f"U-{record_id}",
        division=division,
        status=status,
        final_average=average,
        adjectival_rating=AdjectivalRating.VERY_SATISFACTORY,
    )


def test_violation_when_individuals_exceed_office():
    office = build_office_record(status=RecordStatus.FINALIZED, final_average=3.0)

    report = consolidate(office, [rated("R-1", 3.5)])

    assert report.office_average == 3.0
    assert report.global_individual_average == pytest.approx(3.5)
    assert report.violation is True


def test_no_violation_without_office_rating():
    office = build_office_record(status=RecordStatus.SUBMITTED)

    with_unrated_office = consolidate(office, [rated("R-1", 4.8)])
    without_office = consolidate(None, [rated("R-1", 4.8)])

    assert with_unrated_office.office_average == 0.0
    assert with_unrated_office.violation is False
    assert without_office.violation is False
    assert without_office.categories == []


def test_no_violation_when_individuals_do_not_exceed_office():
    office = build_office_record(status=RecordStatus.FINALIZED, final_average=4.0)

    report = consolidate(office, [rated("R-1", 4.0), rated("R-2", 3.0)])

    assert report.global_individual_average == pytest.approx(3.5)
    assert report.violation is False


def test_only_qualifying_records_enter_global_average():
    records = [
        rated("R-1", 4.0),
        rated("R-2", 5.0, status=RecordStatus.FINALIZED),
        rated("R-3", 1.0, status=RecordStatus.REVIEWED),
        build_record(record_id="R-4", subject_id="U-4", status=RecordStatus.APPROVED),
    ]

    report = consolidate(None, records)

    assert report.qualifying_count == 2
    assert report.global_individual_average == pytest.approx(4.5)
    assert report.global_adjectival_rating is AdjectivalRating.OUTSTANDING


def test_division_breakdown():
    records = [
        rated("R-1", 4.0, division="Assessment"),
        rated("R-2", 3.0, division="Assessment"),
        build_record(record_id="R-3", subject_id="U-3", division="Assessment"),
        rated("R-4", 4.6, division="Records", status=RecordStatus.FINALIZED),
        build_record(record_id="R-5", subject_id="U-5", division=None, status=RecordStatus.SUBMITTED),
    ]

    report = consolidate(None, records)
    divisions = {d.division: d for d in report.divisions}

    assert list(divisions) == ["Assessment", "Records", "Unassigned"]
    assessment = divisions["Assessment"]
    assert (assessment.record_count, assessment.submitted_count, assessment.rated_count) == (3, 2, 2)
    assert assessment.average == pytest.approx(3.5)
    assert assessment.adjectival_rating is AdjectivalRating.VERY_SATISFACTORY
    assert divisions["Records"].adjectival_rating is AdjectivalRating.OUTSTANDING
    unassigned = divisions["Unassigned"]
    assert (unassigned.submitted_count, unassigned.rated_count, unassigned.average) == (1, 0, 0.0)
    assert unassigned.adjectival_rating is AdjectivalRating.NOT_APPLICABLE


def test_category_breakdown_for_office():
    office = build_office_record(
        status=RecordStatus.FINALIZED,
        final_average=3.5,
        outputs=[
            build_output("SP-1", category=OutputCategory.STRATEGIC_PRIORITY, rating_q=5, rating_e=5, rating_t=5),
            build_output("SP-2", category=OutputCategory.STRATEGIC_PRIORITY, rating_q=4),
            build_output("CF-1", category=OutputCategory.CORE_FUNCTION, rating_q=3, rating_e=2),
            build_output("CF-2", category=OutputCategory.CORE_FUNCTION),
        ],
    )

    report = consolidate(office, [])
    categories = {c.category: c for c in report.categories}

    strategic = categories[OutputCategory.STRATEGIC_PRIORITY]
    assert strategic.average == pytest.approx(4.5)
    assert strategic.adjectival_rating is AdjectivalRating.OUTSTANDING
    core = categories[OutputCategory.CORE_FUNCTION]
    assert (core.output_count, core.rated_count) == (2, 1)
    assert core.average == pytest.approx(2.5)
    support = categories[OutputCategory.SUPPORT_FUNCTION]
    assert (support.output_count, support.average) == (0, 0.0)


def test_qualifying_statuses_are_configurable():
    engine = ConsolidationEngine(config=ConsolidationConfig(qualifying_statuses=("finalized",)))

    report = engine.consolidate(
        None,
        [rated("R-1", 4.0), rated("R-2", 2.0, status=RecordStatus.FINALIZED)],
    )

    assert report.qualifying_count == 1
    assert report.global_individual_average == pytest.approx(2.0)


def test_office_records_in_individual_list_are_ignored():
    office = build_office_record(status=RecordStatus.FINALIZED, final_average=2.0)

    report = consolidate(None, [office, rated("R-1", 3.0)])

    assert report.qualifying_count == 1
    assert report.period_id == "P-2026-1"
