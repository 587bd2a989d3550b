"""
Filter criteria for statement queries.
"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class FilterCriteria:
    """
    Equality constraints on a statement query.

    A field left as None places no constraint on that dimension. All set
    fields must match (logical AND).

    ``statement_id`` is carried for completeness only: stores ignore it in
    find_by_filter, and lookups by id go through
    StatementService.get_statement.
    """
    actor: Optional[str] = None
    activity: Optional[str] = None
    # Ignored by find_by_filter
    statement_id: Optional[str] = None

    def as_dict(self) -> Dict[str, str]:
        """Set criteria keyed by their query parameter names."""
        keys = {"actor": self.actor, "activity": self.activity, "statementId": self.statement_id}
        return {k: v for k, v in keys.items() if v is not None}

    @property
    def is_empty(self) -> bool:
        return not self.as_dict()
