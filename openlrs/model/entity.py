"""
Tagged references to the record kinds an LRS keeps.
"""

from dataclasses import dataclass
from enum import Enum


class RecordKind(str, Enum):
    """Kinds of persisted LRS records."""
    STATEMENT = "STATEMENT"
    ACTIVITY = "ACTIVITY"
    AGENT = "AGENT"


@dataclass(frozen=True)
class EntityRef:
    """A record kind paired with the key that locates the record."""
    kind: RecordKind
    key: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.key}"
