"""Pytest configuration — ensures the project root is importable."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from contact_reconciler.pipeline import ContactReconciliationPipeline  # noqa: E402


@pytest.fixture
def pipeline() -> ContactReconciliationPipeline:
    """A fresh pipeline per test — it holds no state, but keeps tests honest."""
    return ContactReconciliationPipeline()
