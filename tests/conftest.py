"""Shared test fixtures."""

import pytest

from fakes import FakeTracker, MemoryMediaStore, make_issue
from linear_mcp.models import Issue


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def media_store() -> MemoryMediaStore:
    return MemoryMediaStore()


@pytest.fixture
def sample_issue(tracker: FakeTracker) -> Issue:
    return tracker.add(make_issue("ENG-123", title="Fix null check in auth middleware"))
