import os

import pytest

os.environ.setdefault("VA_OTEL_ENABLED", "false")

from vibe_apply.core.config import get_settings  # noqa: E402
from vibe_apply.services.store import InMemoryRecordStore, get_record_store  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_caches():
    get_settings.cache_clear()
    get_record_store.cache_clear()
    yield
    get_settings.cache_clear()
    get_record_store.cache_clear()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()
