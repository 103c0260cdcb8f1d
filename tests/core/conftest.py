from __future__ import annotations

import pytest

from builders import WorkflowHarness


@pytest.fixture
def harness() -> WorkflowHarness:
    return WorkflowHarness()
