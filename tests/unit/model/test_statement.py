"""
Tests for the statement model: shorthand parsing, canonical JSON, identity.
"""

import json

import pytest

from openlrs.model.entity import EntityRef, RecordKind
from openlrs.model.statement import (
    Activity,
    Actor,
    Statement,
    StatementRef,
    StatementResult,
    Verb,
)
from openlrs.shared.exceptions import StatementEncodingError, StatementValidationError


def test_shorthand_parts_expand():
    """Bare strings become an mbox agent, a verb id and an activity."""
    statement = Statement.from_dict({
        "actor": "mailto:a@example.org",
        "verb": "completed",
        "object": "http://example.org/course/1",
    })

    assert statement.actor.mbox == "mailto:a@example.org"
    assert statement.verb.id == "completed"
    assert isinstance(statement.object, Activity)
    assert statement.object.id == "http://example.org/course/1"


def test_non_mailto_actor_shorthand_is_openid():
    actor = Actor.model_validate("https://id.example.org/learner/7")
    assert actor.openid == "https://id.example.org/learner/7"
    assert actor.identifier == "https://id.example.org/learner/7"


def test_absent_fields_are_omitted(statement_factory):
    """Unset optional fields produce no key at all, not null."""
    data = json.loads(statement_factory().to_json())

    assert "result" not in data
    assert "context" not in data
    assert "stored" not in data
    assert "id" not in data
    assert None not in data.values()


def test_canonical_json_uses_xapi_names():
    statement = Statement.from_dict({
        "actor": {"account": {"homePage": "http://lms.example.org", "name": "student42"}},
        "verb": {"id": "http://adlnet.gov/expapi/verbs/attempted", "display": {"en-US": "attempted"}},
        "object": {"id": "http://example.org/quiz/3"},
    })
    data = json.loads(statement.to_json())

    assert data["actor"] == {
        "objectType": "Agent",
        "account": {"homePage": "http://lms.example.org", "name": "student42"},
    }
    assert data["object"]["objectType"] == "Activity"
    assert data["verb"]["display"] == {"en-US": "attempted"}


def test_to_json_is_deterministic(statement_factory):
    statement = statement_factory(result={"score": {"scaled": 0.9}, "success": True})
    assert statement.to_json() == statement.to_json()
    assert str(statement) == statement.to_json()


def test_json_round_trip(statement_factory):
    statement = statement_factory(
        id="9b3c5f2e-8d1a-4c47-9e6b-2f1a0c3d4e5f",
        timestamp="2024-01-15T09:30:00Z",
        context={"platform": "Moodle"},
    )
    assert Statement.from_json(statement.to_json()) == statement


@pytest.mark.parametrize("obj,expected_type", [
    ({"objectType": "StatementRef", "id": "9b3c5f2e-8d1a-4c47-9e6b-2f1a0c3d4e5f"}, StatementRef),
    ({"objectType": "Agent", "mbox": "mailto:peer@example.org"}, Actor),
    ({"objectType": "Activity", "id": "http://example.org/a"}, Activity),
])
def test_object_type_dispatch(obj, expected_type):
    statement = Statement.from_dict({"actor": "mailto:a@example.org", "verb": "v", "object": obj})
    assert isinstance(statement.object, expected_type)


def test_substatement_object_is_rejected():
    with pytest.raises(StatementValidationError, match="SubStatement"):
        Statement.from_dict({
            "actor": "mailto:a@example.org",
            "verb": "v",
            "object": {"objectType": "SubStatement"},
        })


def test_unknown_top_level_field_is_rejected(statement_factory):
    with pytest.raises(StatementValidationError):
        Statement.from_dict({
            "actor": "mailto:a@example.org",
            "verb": "v",
            "object": "http://example.org/a",
            "attachments": [],
        })


def test_missing_required_fields_allowed_at_construction():
    """Required-field checks happen in the service, not the model."""
    statement = Statement.from_dict({"verb": "v"})
    assert statement.actor is None
    assert statement.object is None


def test_unencodable_value_raises_encoding_error():
    statement = Statement(
        actor=Actor(mbox="mailto:a@example.org"),
        verb=Verb(id="v"),
        object=Activity(id="http://example.org/a"),
        result={"raw": object()},
    )
    with pytest.raises(StatementEncodingError):
        statement.to_json()


def test_identity_accessors(statement_factory):
    statement = statement_factory(id="9b3c5f2e-8d1a-4c47-9e6b-2f1a0c3d4e5f")

    assert statement.key == "9b3c5f2e-8d1a-4c47-9e6b-2f1a0c3d4e5f"
    assert statement.object_key == "STATEMENT"
    ref = statement.entity_ref()
    assert ref == EntityRef(RecordKind.STATEMENT, statement.id)
    assert str(ref) == "STATEMENT:9b3c5f2e-8d1a-4c47-9e6b-2f1a0c3d4e5f"


def test_pending_statement_has_no_entity_ref(statement_factory):
    with pytest.raises(StatementValidationError):
        statement_factory().entity_ref()


def test_actor_and_activity_refs(statement_factory):
    statement = statement_factory()
    assert statement.actor.entity_ref() == EntityRef(RecordKind.AGENT, "mailto:a@example.org")
    assert statement.object.entity_ref() == EntityRef(RecordKind.ACTIVITY, "http://example.org/course/1")


def test_filter_keys(statement_factory):
    statement = statement_factory()
    assert statement.actor_id == "mailto:a@example.org"
    assert statement.activity_id == "http://example.org/course/1"

    ref = Statement.from_dict({
        "actor": "mailto:a@example.org",
        "verb": "v",
        "object": {"objectType": "StatementRef", "id": "9b3c5f2e-8d1a-4c47-9e6b-2f1a0c3d4e5f"},
    })
    assert ref.activity_id is None


def test_anonymous_group_has_no_identifier():
    group = Actor.model_validate({
        "objectType": "Group",
        "member": [{"mbox": "mailto:a@example.org"}, {"mbox": "mailto:b@example.org"}],
    })
    assert group.identifier is None
    assert group.entity_ref() is None
    assert len(group.member) == 2


def test_result_envelope_omits_more_on_last_page(statement_factory):
    data = json.loads(StatementResult(statements=[statement_factory()]).to_json())
    assert "more" not in data
    assert len(data["statements"]) == 1
