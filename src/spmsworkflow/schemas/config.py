"""Pydantic configuration schema for YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .records import RecordStatus


class WorkflowSettings(BaseModel):
    individual_review_remarks_min: int | None = Field(default=None, ge=0)
    office_review_remarks_min: int | None = Field(default=None, ge=0)
    approval_comments_min: int | None = Field(default=None, ge=0)
    individual_return_reason_min: int | None = Field(default=None, ge=0)
    office_return_reason_min: int | None = Field(default=None, ge=0)
    require_active_period: bool | None = None

    model_config = ConfigDict(extra="forbid")


class ConsolidationSettings(BaseModel):
    qualifying_statuses: list[RecordStatus] | None = None

    model_config = ConfigDict(extra="forbid")


class EligibilitySettings(BaseModel):
    scope: str | None = Field(default=None, pattern="^(period|lifetime)$")
    eligible_statuses: list[RecordStatus] | None = None

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    workflow: WorkflowSettings = Field(default_factory=WorkflowSettings)
    consolidation: ConsolidationSettings = Field(default_factory=ConsolidationSettings)
    eligibility: EligibilitySettings = Field(default_factory=EligibilitySettings)

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        for section in ("workflow", "consolidation", "eligibility"):
            values = getattr(self, section).model_dump(mode="json", exclude_none=True)
            if values:
                settings[section] = values
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
