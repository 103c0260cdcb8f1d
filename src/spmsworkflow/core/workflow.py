"""Workflow state machine for individual and office performance records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Any, Callable, Iterable, Mapping

import pendulum
import pydantic
import structlog

from ..adapters import IdentityProvider, PeriodDirectory, RecordStore
from ..schemas import (
    Actor,
    OutputRating,
    PerformanceOutput,
    PerformanceRecord,
    RecordKind,
    RecordStatus,
    Role,
)
from ..schemas.records import HR_MANAGERS, REVIEWERS
from .errors import (
    ConcurrencyConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    TransitionResult,
    ValidationError,
    WorkflowError,
)
from .rating import DIMENSIONS, classify, output_average, record_average


class Action(str, Enum):
    SUBMIT = "submit"
    REVIEW = "review"
    APPROVE = "approve"
    FINALIZE = "finalize"
    RETURN = "return"
    EDIT = "edit"


S = RecordStatus

TRANSITIONS: dict[RecordKind, dict[tuple[RecordStatus, Action], RecordStatus]] = {
    RecordKind.INDIVIDUAL: {
        (S.DRAFT, Action.SUBMIT): S.SUBMITTED,
        (S.RETURNED, Action.SUBMIT): S.SUBMITTED,
        (S.SUBMITTED, Action.REVIEW): S.REVIEWED,
        (S.REVIEWED, Action.APPROVE): S.APPROVED,
        (S.APPROVED, Action.FINALIZE): S.FINALIZED,
        (S.SUBMITTED, Action.RETURN): S.RETURNED,
        (S.REVIEWED, Action.RETURN): S.RETURNED,
    },
    RecordKind.OFFICE: {
        (S.DRAFT, Action.SUBMIT): S.SUBMITTED,
        (S.RETURNED, Action.SUBMIT): S.SUBMITTED,
        (S.SUBMITTED, Action.REVIEW): S.REVIEWED,
        (S.REVIEWED, Action.FINALIZE): S.FINALIZED,
        (S.SUBMITTED, Action.RETURN): S.RETURNED,
    },
}

EDITABLE_STATUSES: frozenset[RecordStatus] = frozenset({S.DRAFT, S.RETURNED})


@dataclass(frozen=True, slots=True)
class PermissionRule:
    """Who may perform one action on one kind of record."""

    roles: frozenset[Role] = frozenset()
    allow_subject: bool = False
    forbid_subject: bool = False
    division_scoped: frozenset[Role] = frozenset()

    def allows(self, actor: Actor, record: PerformanceRecord) -> bool:
        is_subject = actor.user_id == record.subject_id
        if self.allow_subject and is_subject:
            return True
        if self.forbid_subject and is_subject:
            return False
        if actor.role not in self.roles:
            return False
        if actor.role in self.division_scoped and actor.division != record.division:
            return False
        return True


_CHIEF_SCOPED = frozenset({Role.DIVISION_CHIEF})

PERMISSIONS: dict[RecordKind, dict[Action, PermissionRule]] = {
    RecordKind.INDIVIDUAL: {
        Action.EDIT: PermissionRule(allow_subject=True),
        Action.SUBMIT: PermissionRule(roles=HR_MANAGERS, allow_subject=True),
        Action.REVIEW: PermissionRule(
            roles=REVIEWERS, forbid_subject=True, division_scoped=_CHIEF_SCOPED
        ),
        Action.APPROVE: PermissionRule(roles=HR_MANAGERS, forbid_subject=True),
        Action.FINALIZE: PermissionRule(roles=HR_MANAGERS, forbid_subject=True),
        Action.RETURN: PermissionRule(
            roles=REVIEWERS, forbid_subject=True, division_scoped=_CHIEF_SCOPED
        ),
    },
    RecordKind.OFFICE: {
        Action.EDIT: PermissionRule(roles=HR_MANAGERS),
        Action.SUBMIT: PermissionRule(roles=HR_MANAGERS),
        Action.REVIEW: PermissionRule(roles=HR_MANAGERS),
        Action.FINALIZE: PermissionRule(roles=frozenset({Role.HEAD_OF_OFFICE})),
        Action.RETURN: PermissionRule(roles=HR_MANAGERS),
    },
}


@dataclass
class WorkflowPolicy:
    """Minimum text lengths and period checks applied by transition guards."""

    individual_review_remarks_min: int = 20
    office_review_remarks_min: int = 1
    approval_comments_min: int = 5
    individual_return_reason_min: int = 20
    office_return_reason_min: int = 10
    require_active_period: bool = True


Updates = dict[str, Any]
Apply = Callable[[PerformanceRecord, Actor, datetime], Updates]


class WorkflowEngine:
    """Validates and commits status transitions against the record store.

    Every public operation returns a :class:`TransitionResult`; workflow errors
    never propagate to the caller. A transition re-reads the record, checks the
    transition table, the permission table and the guard, then commits with
    compare-and-swap on the status it read.
    """

    def __init__(
        self,
        *,
        store: RecordStore,
        periods: PeriodDirectory,
        identity: IdentityProvider,
        policy: WorkflowPolicy | None = None,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._periods = periods
        self._identity = identity
        self._policy = policy or WorkflowPolicy()
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    # Public operations

    def submit(self, record_id: str, actor_id: str) -> TransitionResult:
        return self._execute(Action.SUBMIT, record_id, actor_id, self._apply_submit)

    def review(
        self,
        record_id: str,
        actor_id: str,
        remarks: str,
        output_ratings: Mapping[str, OutputRating | Mapping[str, Any]] | None = None,
    ) -> TransitionResult:
        apply = partial(self._apply_review, remarks=remarks, output_ratings=output_ratings)
        return self._execute(Action.REVIEW, record_id, actor_id, apply)

    def approve(self, record_id: str, actor_id: str, comments: str) -> TransitionResult:
        apply = partial(self._apply_approve, comments=comments)
        return self._execute(Action.APPROVE, record_id, actor_id, apply)

    def finalize(self, record_id: str, actor_id: str, *, confirm: bool = False) -> TransitionResult:
        apply = partial(self._apply_finalize, confirm=confirm)
        return self._execute(Action.FINALIZE, record_id, actor_id, apply)

    def return_record(self, record_id: str, actor_id: str, reason: str) -> TransitionResult:
        apply = partial(self._apply_return, reason=reason)
        return self._execute(Action.RETURN, record_id, actor_id, apply)

    def update_outputs(
        self,
        record_id: str,
        actor_id: str,
        outputs: Iterable[PerformanceOutput | Mapping[str, Any]],
    ) -> TransitionResult:
        apply = partial(self._apply_edit, outputs=list(outputs))
        return self._execute(Action.EDIT, record_id, actor_id, apply)

    def permitted_actions(self, record: PerformanceRecord, actor: Actor) -> list[Action]:
        """Actions the actor may attempt on the record in its current status."""
        permitted: list[Action] = []
        for action in Action:
            if not self._status_allows(record, action):
                continue
            rule = PERMISSIONS[record.kind].get(action)
            if rule is not None and rule.allows(actor, record):
                permitted.append(action)
        return permitted

    @staticmethod
    def is_editable(record: PerformanceRecord) -> bool:
        return record.status in EDITABLE_STATUSES

    # Orchestration

    def _execute(self, action: Action, record_id: str, actor_id: str, apply: Apply) -> TransitionResult:
        log = self._logger.bind(record_id=record_id, actor_id=actor_id, action=action.value)
        try:
            record, actor = self._load(record_id, actor_id)
            target = self._target_status(record, action)
            self._authorize(action, record, actor)
            changes = apply(record, actor, self._now_provider())
            changes["status"] = target
            updated = record.model_copy(update=changes)
            if not self._store.compare_and_save(updated, record.status):
                raise ConcurrencyConflictError(
                    "Record changed since it was read; reload and retry",
                    record_id=record_id,
                    expected_status=record.status.value,
                )
        except WorkflowError as exc:
            log.warning("workflow.rejected", code=exc.code, reason=exc.message)
            return TransitionResult(error=exc)

        log.info(
            "workflow.transition",
            kind=record.kind.value,
            from_status=record.status.value,
            to_status=updated.status.value,
            final_average=updated.final_average,
        )
        return TransitionResult(record=updated)

    def _load(self, record_id: str, actor_id: str) -> tuple[PerformanceRecord, Actor]:
        record = self._store.load(record_id)
        if record is None:
            raise NotFoundError(f"Record {record_id!r} not found", record_id=record_id)
        actor = self._identity.resolve(actor_id)
        if actor is None:
            raise NotFoundError(f"User {actor_id!r} not found", actor_id=actor_id)
        return record, actor

    @staticmethod
    def _status_allows(record: PerformanceRecord, action: Action) -> bool:
        if action is Action.EDIT:
            return record.status in EDITABLE_STATUSES
        return (record.status, action) in TRANSITIONS[record.kind]

    def _target_status(self, record: PerformanceRecord, action: Action) -> RecordStatus:
        if not self._status_allows(record, action):
            raise InvalidTransitionError(
                f"Cannot {action.value} a {record.kind.value} record in status {record.status.value!r}",
                status=record.status.value,
                action=action.value,
            )
        if action is Action.EDIT:
            return record.status
        return TRANSITIONS[record.kind][(record.status, action)]

    @staticmethod
    def _authorize(action: Action, record: PerformanceRecord, actor: Actor) -> None:
        rule = PERMISSIONS[record.kind].get(action)
        if rule is None or not rule.allows(actor, record):
            raise PermissionDeniedError(
                f"Role {actor.role.value!r} may not {action.value} this record",
                role=actor.role.value,
                action=action.value,
            )

    # Guards and effects

    def _apply_submit(self, record: PerformanceRecord, actor: Actor, now: datetime) -> Updates:
        if not record.outputs:
            raise ValidationError("Add at least one output before submitting", field="outputs")
        for index, output in enumerate(record.outputs):
            for name in ("title", "indicator"):
                if not getattr(output, name).strip():
                    raise ValidationError(
                        f"Output {output.output_id!r} is missing its {name}",
                        field=f"outputs[{index}].{name}",
                    )

        period = self._periods.get_period(record.period_id)
        if period is None:
            raise NotFoundError(f"Rating period {record.period_id!r} not found", period_id=record.period_id)
        if self._policy.require_active_period and not period.is_active:
            raise ValidationError(f"Rating period {period.name or period.period_id!r} is not active", field="period_id")

        return {"submitted_by": actor.user_id, "submitted_at": now}

    def _apply_review(
        self,
        record: PerformanceRecord,
        actor: Actor,
        now: datetime,
        *,
        remarks: str,
        output_ratings: Mapping[str, OutputRating | Mapping[str, Any]] | None,
    ) -> Updates:
        minimum = (
            self._policy.office_review_remarks_min
            if record.kind is RecordKind.OFFICE
            else self._policy.individual_review_remarks_min
        )
        _require_length(remarks, minimum, field="remarks")

        changes: Updates = {
            "review_remarks": (remarks or "").strip(),
            "reviewed_by": actor.user_id,
            "reviewed_at": now,
        }

        if record.kind is RecordKind.OFFICE and not output_ratings:
            raise ValidationError("Office review requires output ratings", field="output_ratings")

        if output_ratings:
            outputs = _apply_ratings(record, output_ratings)
            changes["outputs"] = outputs
            if record.kind is RecordKind.OFFICE:
                changes.update(_freeze_rating(outputs))
        return changes

    def _apply_approve(self, record: PerformanceRecord, actor: Actor, now: datetime, *, comments: str) -> Updates:
        _require_length(comments, self._policy.approval_comments_min, field="comments")
        outputs = [o.model_copy(update={"average": output_average(o)}) for o in record.outputs]
        changes = _freeze_rating(outputs)
        changes.update(
            {
                "outputs": outputs,
                "approval_comments": (comments or "").strip(),
                "approved_by": actor.user_id,
                "approved_at": now,
            }
        )
        return changes

    @staticmethod
    def _apply_finalize(record: PerformanceRecord, actor: Actor, now: datetime, *, confirm: bool) -> Updates:
        if not confirm:
            raise ValidationError("Finalization must be explicitly confirmed", field="confirm")
        if not record.is_rated:
            raise ValidationError("Record has no frozen rating", field="final_average")
        return {"finalized_by": actor.user_id, "finalized_at": now}

    def _apply_return(self, record: PerformanceRecord, actor: Actor, now: datetime, *, reason: str) -> Updates:
        minimum = (
            self._policy.office_return_reason_min
            if record.kind is RecordKind.OFFICE
            else self._policy.individual_return_reason_min
        )
        _require_length(reason, minimum, field="reason")
        return {
            "final_average": None,
            "adjectival_rating": None,
            "return_reason": (reason or "").strip(),
            "returned_by": actor.user_id,
            "returned_at": now,
        }

    @staticmethod
    def _apply_edit(
        record: PerformanceRecord,
        actor: Actor,
        now: datetime,
        *,
        outputs: list[PerformanceOutput | Mapping[str, Any]],
    ) -> Updates:
        """Replace output text; ratings already on the record are kept and only change at review."""
        validated: list[PerformanceOutput] = []
        seen: set[str] = set()
        for index, item in enumerate(outputs):
            try:
                output = (
                    item if isinstance(item, PerformanceOutput) else PerformanceOutput.model_validate(item)
                )
            except pydantic.ValidationError as exc:
                raise ValidationError(f"Invalid output: {exc.errors()[0]['msg']}", field=f"outputs[{index}]") from exc
            if output.output_id in seen:
                raise ValidationError(f"Duplicate output id {output.output_id!r}", field=f"outputs[{index}].output_id")
            seen.add(output.output_id)
            current = record.output(output.output_id)
            output = output.model_copy(
                update={name: getattr(current, name) if current else None for name in DIMENSIONS}
            )
            validated.append(output.model_copy(update={"average": output_average(output)}))
        return {"outputs": validated}


def _require_length(text: str | None, minimum: int, *, field: str) -> None:
    length = len((text or "").strip())
    if length < minimum:
        raise ValidationError(
            f"{field.capitalize()} must be at least {minimum} characters (got {length})",
            field=field,
            minimum=minimum,
            length=length,
        )


def _apply_ratings(
    record: PerformanceRecord,
    output_ratings: Mapping[str, OutputRating | Mapping[str, Any]],
) -> list[PerformanceOutput]:
    parsed: dict[str, OutputRating] = {}
    for output_id, raw in output_ratings.items():
        if record.output(output_id) is None:
            raise NotFoundError(f"Output {output_id!r} not found on record", output_id=output_id)
        try:
            parsed[output_id] = raw if isinstance(raw, OutputRating) else OutputRating.model_validate(raw)
        except pydantic.ValidationError as exc:
            raise ValidationError(
                f"Invalid rating for output {output_id!r}: {exc.errors()[0]['msg']}",
                field=f"output_ratings.{output_id}",
            ) from exc

    updated: list[PerformanceOutput] = []
    for output in record.outputs:
        rating = parsed.get(output.output_id)
        if rating is not None:
            output = output.model_copy(update=rating.model_dump(exclude_unset=True))
        updated.append(output.model_copy(update={"average": output_average(output)}))
    return updated


def _freeze_rating(outputs: list[PerformanceOutput]) -> Updates:
    average = record_average(outputs)
    if average <= 0:
        raise ValidationError("No output has been rated", field="outputs")
    return {"final_average": average, "adjectival_rating": classify(average)}
