"""
Tests for the /xAPI/statements resource.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from openlrs.api.app import create_app
from openlrs.shared.exceptions import (
    MalformedStatementError,
    StoreUnavailableError,
    StoreWriteError,
)
from openlrs.store.memory import MemoryStatementStore

URL = "/xAPI/statements"

SCENARIO = {
    "actor": "mailto:a@example.org",
    "verb": "completed",
    "object": "http://example.org/course/1",
}


def test_post_then_get_by_id(client):
    """Post returns one generated id; GET by that id returns the completed statement."""
    response = client.post(URL, json=SCENARIO)

    assert response.status_code == 200
    ids = response.json()
    assert isinstance(ids, list) and len(ids) == 1
    uuid.UUID(ids[0])

    response = client.get(URL, params={"statementId": ids[0]})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json; charset=utf-8"
    data = response.json()
    assert data["id"] == ids[0]
    assert data["stored"]
    assert data["actor"]["mbox"] == "mailto:a@example.org"
    assert "result" not in data


def test_post_array_returns_one_id_per_statement(client):
    response = client.post(URL, json=[SCENARIO, {**SCENARIO, "verb": "attempted"}])
    assert response.status_code == 200
    assert len(response.json()) == 2


def test_get_unknown_id_is_404(client):
    response = client.get(URL, params={"statementId": str(uuid.uuid4())})
    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


@pytest.mark.parametrize("body", [
    {"actor": "mailto:a@example.org", "object": "http://example.org/course/1"},
    {**SCENARIO, "id": "not-a-uuid"},
    {**SCENARIO, "object": {"objectType": "SubStatement"}},
    {**SCENARIO, "attachments": []},
    "just a string",
])
def test_invalid_statement_is_400(client, memory_store, body):
    response = client.post(URL, json=body)
    assert response.status_code == 400
    assert memory_store.count() == 0


def test_invalid_json_is_400(client):
    response = client.post(URL, content="{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400


def test_duplicate_id_is_409(client):
    statement_id = str(uuid.uuid4())
    assert client.post(URL, json={**SCENARIO, "id": statement_id}).status_code == 200

    response = client.post(URL, json={**SCENARIO, "id": statement_id})
    assert response.status_code == 409


def test_filter_by_actor_and_activity(client):
    client.post(URL, json=[
        {**SCENARIO, "actor": "mailto:a1@example.org", "object": "http://example.org/x1"},
        {**SCENARIO, "actor": "mailto:a1@example.org", "object": "http://example.org/x2"},
        {**SCENARIO, "actor": "mailto:a2@example.org", "object": "http://example.org/x1"},
    ])

    response = client.get(URL, params={"actor": "mailto:a1@example.org"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json; charset=utf-8"
    data = response.json()
    assert len(data["statements"]) == 2
    assert "more" not in data

    data = client.get(URL, params={"actor": "mailto:a1@example.org", "activity": "http://example.org/x1"}).json()
    assert len(data["statements"]) == 1

    data = client.get(URL, params={"actor": '{"mbox": "mailto:a2@example.org"}'}).json()
    assert len(data["statements"]) == 1

    assert len(client.get(URL).json()["statements"]) == 3


def test_empty_filter_result_is_not_an_error(client):
    response = client.get(URL, params={"actor": "mailto:nobody@example.org"})
    assert response.status_code == 200
    assert response.json() == {"statements": []}


def test_more_link_fetches_next_page(client):
    client.post(URL, json=[SCENARIO, SCENARIO, SCENARIO])

    first = client.get(URL, params={"limit": 2}).json()
    assert len(first["statements"]) == 2
    assert first["more"].startswith(URL + "?")
    assert "cursor=" in first["more"]

    second = client.get(first["more"]).json()
    assert len(second["statements"]) == 1
    assert "more" not in second


def test_statement_id_cannot_be_combined_with_filters(client):
    response = client.get(URL, params={"statementId": str(uuid.uuid4()), "actor": "mailto:a@example.org"})
    assert response.status_code == 400


def test_bad_limit_is_400(client):
    assert client.get(URL, params={"limit": "many"}).status_code == 400
    assert client.get(URL, params={"limit": 0}).status_code == 400


def test_xapi_version_header(client):
    response = client.get(URL)
    assert response.headers["x-experience-api-version"] == "1.0.0"


class BrokenStore(MemoryStatementStore):
    """Store whose every operation fails the given way."""

    def __init__(self, read_error, write_error):
        super().__init__()
        self.read_error = read_error
        self.write_error = write_error

    def find_by_id(self, statement_id):
        raise self.read_error

    def find_by_filter(self, criteria, limit, after=None):
        raise self.read_error

    def save_many(self, statements, clock=None):
        raise self.write_error


@pytest.fixture
def broken_client():
    store = BrokenStore(StoreUnavailableError("store offline"), StoreWriteError("disk full"))
    with TestClient(create_app(store=store, rate_limit_rpm=10000)) as tc:
        yield tc


def test_store_unavailable_is_503(broken_client):
    assert broken_client.get(URL, params={"statementId": str(uuid.uuid4())}).status_code == 503
    assert broken_client.get(URL).status_code == 503


def test_store_write_failure_is_503_and_returns_no_id(broken_client):
    response = broken_client.post(URL, json=SCENARIO)
    assert response.status_code == 503
    assert "detail" in response.json()


def test_malformed_stored_statement_is_500():
    store = BrokenStore(MalformedStatementError("corrupt"), StoreWriteError("disk full"))
    with TestClient(create_app(store=store, rate_limit_rpm=10000)) as tc:
        response = tc.get(URL, params={"statementId": str(uuid.uuid4())})
    assert response.status_code == 500
