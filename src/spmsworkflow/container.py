"""Dependency injection container for the workflow engines."""

from __future__ import annotations

from dependency_injector import containers, providers

from .adapters import InMemoryPeriodDirectory, InMemoryRecordStore, StaticIdentityProvider
from .core import (
    ConsolidationConfig,
    ConsolidationEngine,
    EligibilityConfig,
    EligibilityEngine,
    WorkflowEngine,
    WorkflowPolicy,
)
from .pipeline import ReportingPipeline


class WorkflowContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition.

    Storage and identity default to the in-memory collaborators; applications
    override ``record_store``, ``period_directory`` and ``identity_provider``
    with their own implementations.
    """

    record_store = providers.Singleton(InMemoryRecordStore)
    period_directory = providers.Singleton(InMemoryPeriodDirectory)
    identity_provider = providers.Singleton(StaticIdentityProvider)

    workflow_policy = providers.Singleton(WorkflowPolicy)
    consolidation_config = providers.Singleton(ConsolidationConfig)
    eligibility_config = providers.Singleton(EligibilityConfig)

    workflow_engine = providers.Singleton(
        WorkflowEngine,
        store=record_store,
        periods=period_directory,
        identity=identity_provider,
        policy=workflow_policy,
    )

    consolidation_engine = providers.Singleton(
        ConsolidationEngine,
        config=consolidation_config,
    )

    eligibility_engine = providers.Singleton(
        EligibilityEngine,
        config=eligibility_config,
    )

    pipeline = providers.Factory(
        ReportingPipeline,
        consolidation=consolidation_engine,
        eligibility=eligibility_engine,
    )


def create_container(*, settings: dict | None = None) -> WorkflowContainer:
    """Instantiate container with optional overrides."""

    container = WorkflowContainer()

    if not settings:
        return container

    workflow_settings = settings.get("workflow", {}) if isinstance(settings, dict) else {}
    if workflow_settings:
        container.workflow_policy.override(
            providers.Singleton(WorkflowPolicy, **workflow_settings)
        )

    consolidation_settings = settings.get("consolidation", {}) if isinstance(settings, dict) else {}
    if consolidation_settings:
        container.consolidation_config.override(
            providers.Singleton(ConsolidationConfig, **consolidation_settings)
        )

    eligibility_settings = settings.get("eligibility", {}) if isinstance(settings, dict) else {}
    if eligibility_settings:
        container.eligibility_config.override(
            providers.Singleton(EligibilityConfig, **eligibility_settings)
        )

    return container
