import os

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("GEOCODE_THROTTLE_SECONDS", "0")
os.environ.setdefault("NOMINATIM_URL", "https://nominatim.test")
os.environ.setdefault("OSRM_URL", "https://osrm.test")

import pytest

from georoute.services import storage as storage_module
from georoute.services.events import EventBus
from georoute.services.storage import MemoryRecordStore


@pytest.fixture(autouse=True)
def _clear_shared_records():
    if isinstance(storage_module.record_store, MemoryRecordStore):
        storage_module.record_store._records.clear()
    yield


@pytest.fixture
def record_store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def events() -> EventBus:
    return EventBus()
