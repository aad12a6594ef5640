"""Shared fixtures for setrack tests."""

from __future__ import annotations

import pytest

from tests.helpers import FixedClock


@pytest.fixture
def clock():
    """Deterministic clock for repository timestamps."""
    return FixedClock()


@pytest.fixture
def storage_dir(tmp_path):
    """Storage directory path (not yet created)."""
    return tmp_path / "data"


@pytest.fixture
def repo(storage_dir, clock):
    """ProjectRepository on a fresh storage directory."""
    from setrack.storage import ProjectRepository

    repository = ProjectRepository(storage_dir, clock=clock)
    yield repository
    repository.close()
