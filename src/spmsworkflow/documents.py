"""Helpers for handing finalized records to an external document renderer."""

from __future__ import annotations

from typing import Any

import structlog

from .adapters import DocumentRenderer
from .core.errors import InvalidTransitionError
from .schemas import OutputCategory, PerformanceRecord, RatingPeriod, RecordStatus

_CATEGORY_ORDER = {category: index for index, category in enumerate(OutputCategory)}


def build_document_payload(
    record: PerformanceRecord,
    *,
    period: RatingPeriod | None = None,
    subject_name: str | None = None,
) -> dict[str, Any]:
    """Construct the data a renderer needs; ratings are already frozen on the record."""
    if record.status is not RecordStatus.FINALIZED:
        raise InvalidTransitionError(
            f"Only finalized records can be exported (status {record.status.value!r})",
            status=record.status.value,
        )

    outputs = sorted(
        record.outputs,
        key=lambda o: (_CATEGORY_ORDER[o.category], o.sort_order),
    )
    return {
        "record_id": record.record_id,
        "kind": record.kind.value,
        "subject": {"id": record.subject_id, "name": subject_name, "division": record.division},
        "period": {
            "id": record.period_id,
            "name": period.name if period else None,
        },
        "outputs": [
            {
                "category": output.category.value,
                "title": output.title,
                "indicator": output.indicator,
                "accomplishments": output.accomplishments,
                "ratings": {
                    "q": output.rating_q,
                    "e": output.rating_e,
                    "t": output.rating_t,
                    "average": output.average,
                },
                "remarks": output.remarks,
            }
            for output in outputs
        ],
        "final_average": record.final_average,
        "adjectival_rating": record.adjectival_rating.value if record.adjectival_rating else None,
        "signatories": {
            "submitted_by": record.submitted_by,
            "reviewed_by": record.reviewed_by,
            "approved_by": record.approved_by,
            "finalized_by": record.finalized_by,
        },
        "remarks": {
            "review": record.review_remarks,
            "approval": record.approval_comments,
        },
    }


class DocumentExporter:
    """Pass finalized records to a renderer."""

    def __init__(self, renderer: DocumentRenderer):
        self._renderer = renderer
        self._logger = structlog.get_logger(__name__)

    def export(
        self,
        record: PerformanceRecord,
        *,
        period: RatingPeriod | None = None,
        subject_name: str | None = None,
    ) -> bytes:
        payload = build_document_payload(record, period=period, subject_name=subject_name)
        document = self._renderer.render(payload)
        self._logger.info("documents.exported", record_id=record.record_id, size=len(document))
        return document
