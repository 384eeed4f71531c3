"""
Shared fixtures: a deterministic clock and an in-memory repository.
"""

import pytest

from factories import TickingClock
from racebook.repository import RaceRepository
from racebook.storage import MemoryStore


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def repo(store, clock):
    return RaceRepository(store, clock=clock)
