from itertools import count

import pytest

from primonotes.application.study_service import StudyService
from primonotes.infrastructure.store import MemoryCollectionStore
from tests.factories import FakeTimer, FrozenClock


@pytest.fixture(autouse=True)
def reset_fake_timers():
    FakeTimer.instances.clear()
    yield
    FakeTimer.instances.clear()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def store():
    return MemoryCollectionStore()


@pytest.fixture
def sequential_ids():
    counter = count(1)
    return lambda: f"{next(counter):04d}"


@pytest.fixture
def service(store, clock, sequential_ids):
    return StudyService(store, clock=clock, id_factory=sequential_ids)
