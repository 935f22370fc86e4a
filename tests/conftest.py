"""Shared test fixtures for the statepersist test suite."""

from __future__ import annotations

import pytest

from statepersist.storage import FileStorage
from tests.helpers import RecordingStorage


@pytest.fixture
def storage() -> RecordingStorage:
    """Storage holding an unversioned counter of 0."""
    return RecordingStorage()


@pytest.fixture
def empty_storage() -> RecordingStorage:
    """Storage with nothing persisted."""
    return RecordingStorage(None)


@pytest.fixture
def file_storage(tmp_path) -> FileStorage:
    """FileStorage pointing into a temp directory."""
    return FileStorage(tmp_path / "state" / "store.json")


@pytest.fixture
def counter_migrations() -> dict:
    """Two-step registry: 0 seeds the counter, 1 increments it."""
    return {
        0: lambda state: {"counter": 5},
        1: lambda state: {"counter": state["counter"] + 1},
    }
