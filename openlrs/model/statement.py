"""
Pydantic models for xAPI statements.
See https://github.com/adlnet/xAPI-Spec/blob/master/xAPI-Data.md#statements
"""

import json
from typing import Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticSerializationError

from openlrs.model.entity import EntityRef, RecordKind
from openlrs.shared.exceptions import StatementEncodingError, StatementValidationError


class CanonicalModel(BaseModel):
    """Base model with the canonical JSON form: xAPI names, unset fields omitted."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def to_dict(self) -> Dict[str, Any]:
        """Return the canonical JSON-compatible dict."""
        try:
            return self.model_dump(mode="json", by_alias=True, exclude_none=True)
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise StatementEncodingError(
                f"Cannot encode {type(self).__name__}: {e}"
            ) from e

    def to_json(self) -> str:
        """
        Serialize to canonical JSON text.

        Raises:
            StatementEncodingError if any value cannot be encoded
        """
        data = self.to_dict()
        try:
            return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise StatementEncodingError(
                f"Cannot encode {type(self).__name__}: {e}"
            ) from e

    def __str__(self) -> str:
        return self.to_json()


class Account(CanonicalModel):
    """Account on an existing system, used as an agent identifier."""
    home_page: str = Field(alias="homePage")
    name: str


class Actor(CanonicalModel):
    """Agent or Group who performed the action."""
    object_type: Literal["Agent", "Group"] = Field(default="Agent", alias="objectType")
    name: Optional[str] = None
    mbox: Optional[str] = None
    mbox_sha1sum: Optional[str] = None
    openid: Optional[str] = None
    account: Optional[Account] = None
    member: Optional[List["Actor"]] = None

    @model_validator(mode="before")
    @classmethod
    def _expand_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            if data.startswith("mailto:"):
                return {"mbox": data}
            return {"openid": data}
        return data

    @property
    def identifier(self) -> Optional[str]:
        """Canonical identifier string, None for an anonymous group."""
        if self.mbox:
            return self.mbox
        if self.mbox_sha1sum:
            return self.mbox_sha1sum
        if self.openid:
            return self.openid
        if self.account:
            return f"{self.account.home_page}|{self.account.name}"
        return None

    def entity_ref(self) -> Optional[EntityRef]:
        identifier = self.identifier
        return EntityRef(RecordKind.AGENT, identifier) if identifier else None


class Verb(CanonicalModel):
    """Action between actor and object."""
    id: str
    display: Optional[Dict[str, str]] = None

    @model_validator(mode="before")
    @classmethod
    def _expand_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"id": data}
        return data


class Activity(CanonicalModel):
    """Activity object, identified by an IRI."""
    object_type: Literal["Activity"] = Field(default="Activity", alias="objectType")
    id: str
    definition: Optional[Dict[str, Any]] = None

    def entity_ref(self) -> EntityRef:
        return EntityRef(RecordKind.ACTIVITY, self.id)


class StatementRef(CanonicalModel):
    """Reference to another statement by id."""
    object_type: Literal["StatementRef"] = Field(default="StatementRef", alias="objectType")
    id: str


StatementObject = Union[Activity, StatementRef, Actor]


def _parse_object(data: Any) -> Any:
    """Pick the object model from objectType (Activity when absent)."""
    if isinstance(data, str):
        return Activity(id=data)
    if not isinstance(data, dict):
        return data
    object_type = data.get("objectType", "Activity")
    if object_type == "Activity":
        return Activity.model_validate(data)
    if object_type == "StatementRef":
        return StatementRef.model_validate(data)
    if object_type in ("Agent", "Group"):
        return Actor.model_validate(data)
    if object_type == "SubStatement":
        raise ValueError("SubStatement objects are not supported")
    raise ValueError(f"Unknown objectType: {object_type}")


class Statement(CanonicalModel):
    """
    The statement model represents all the available properties of a learning event.

    Only the structure is checked here. Required fields (actor, verb, object)
    are enforced by StatementService before anything reaches the store.
    """

    OBJECT_KEY: ClassVar[str] = RecordKind.STATEMENT.value

    id: Optional[str] = None
    actor: Optional[Actor] = None
    verb: Optional[Verb] = None
    object: Optional[StatementObject] = None
    # Stored as given; no semantics beyond storage
    result: Optional[Dict[str, Any]] = None
    context: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None
    stored: Optional[str] = None
    authority: Optional[str] = None
    version: Optional[str] = None

    @field_validator("object", mode="before")
    @classmethod
    def _dispatch_object(cls, value: Any) -> Any:
        return _parse_object(value)

    @classmethod
    def from_dict(cls, data: Any) -> "Statement":
        """
        Build a statement from decoded JSON.

        Raises:
            StatementValidationError if the structure does not fit
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise StatementValidationError(_describe(e)) from e

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Statement":
        """Parse canonical JSON text back into a statement."""
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise StatementValidationError(_describe(e)) from e

    @property
    def key(self) -> Optional[str]:
        return self.id

    @property
    def object_key(self) -> str:
        return self.OBJECT_KEY

    def entity_ref(self) -> EntityRef:
        if not self.id:
            raise StatementValidationError("Statement has no id yet")
        return EntityRef(RecordKind.STATEMENT, self.id)

    @property
    def actor_id(self) -> Optional[str]:
        """Canonical identifier of the actor, used for filtering."""
        return self.actor.identifier if self.actor else None

    @property
    def activity_id(self) -> Optional[str]:
        """Activity IRI when the object is an activity, used for filtering."""
        return self.object.id if isinstance(self.object, Activity) else None


class StatementResult(CanonicalModel):
    """One page of statements plus the continuation for the next page."""
    statements: List[Statement] = Field(default_factory=list)
    more: Optional[str] = None


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "statement"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
