"""
Pytest fixtures for OpenLRS tests.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from openlrs.api.app import create_app
from openlrs.model.statement import Statement
from openlrs.service.statements import StatementService
from openlrs.shared.config import StatementConfig
from openlrs.store.memory import MemoryStatementStore
from openlrs.store.sqlite import SqliteStatementStore

FIXED_NOW = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


def make_statement(
    actor: str = "mailto:a@example.org",
    verb: str = "http://adlnet.gov/expapi/verbs/completed",
    activity: str = "http://example.org/course/1",
    **fields,
) -> Statement:
    """Build a statement from shorthand parts."""
    return Statement.from_dict({"actor": actor, "verb": verb, "object": activity, **fields})


@pytest.fixture
def statement_factory():
    """Factory for statements with sensible defaults."""
    return make_statement


@pytest.fixture
def memory_store():
    """Empty in-memory statement store."""
    return MemoryStatementStore()


@pytest.fixture
def sqlite_store(tmp_path):
    """Empty SQLite statement store in a temp directory."""
    return SqliteStatementStore(tmp_path / "statements.db")


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store backend in turn."""
    if request.param == "memory":
        return MemoryStatementStore()
    return SqliteStatementStore(tmp_path / "statements.db")


@pytest.fixture
def statement_config():
    """Statement config with explicit defaults."""
    return StatementConfig(xapi_version="1.0.0", default_page_size=50, max_page_size=500)


@pytest.fixture
def service(memory_store, statement_config):
    """StatementService over an in-memory store with a fixed clock."""
    return StatementService(memory_store, statement_config, clock=lambda: FIXED_NOW)


@pytest.fixture
def client(memory_store):
    """Test client over an in-memory store (runs lifespan for app.state)."""
    app = create_app(store=memory_store, rate_limit_rpm=10000)
    with TestClient(app) as tc:
        yield tc
