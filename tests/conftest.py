import itertools

import pytest

from noticeboard.config import ConfigSchema
from noticeboard.stores.local import LocalStore
from noticeboard.stores.memory import MemoryStore


@pytest.fixture
def memory_store():
    return MemoryStore(name="test-store")


@pytest.fixture
def local_store(tmp_path):
    """
    Create a LocalStore rooted in a temporary directory.
    """
    return LocalStore(root=str(tmp_path / "site"), name="test-store")


@pytest.fixture
def clock():
    """
    A millisecond clock that moves on one second per call.
    """
    ticks = itertools.count(1_760_000_000_000, 1000)
    return lambda: next(ticks)


@pytest.fixture
def settings():
    return ConfigSchema(store={"type": "memory"})
