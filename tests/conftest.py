"""Shared fixtures for segblock tests."""

from pathlib import Path
from typing import Any

import pytest

from segblock.storage import DuckDBBackend, MemoryBackend, RuleStore
from segblock.sync import CallbackListener, RuleSync


@pytest.fixture(params=["memory", "duckdb"])
def backend(request: pytest.FixtureRequest):
    """Each store test runs against both backends."""
    if request.param == "memory":
        yield MemoryBackend()
    else:
        db = DuckDBBackend(Path(":memory:"))
        db.connect()
        yield db
        db.close()


@pytest.fixture()
def store(backend) -> RuleStore:
    return RuleStore(backend)


@pytest.fixture()
def messages() -> list[dict[str, Any]]:
    """Messages received by the in-process listener."""
    return []


@pytest.fixture()
def rule_sync(messages: list[dict[str, Any]]) -> RuleSync:
    return RuleSync([CallbackListener(messages.append, name="test")])
