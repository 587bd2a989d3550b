"""
Exception hierarchy for OpenLRS.
"""


class LRSError(Exception):
    """Base exception for all OpenLRS errors."""
    pass


class StatementValidationError(LRSError):
    """Raised when a statement or query parameter is missing or malformed."""
    pass


class StatementNotFoundError(LRSError):
    """Raised when no statement exists for the requested id."""

    def __init__(self, statement_id: str):
        super().__init__(f"Statement {statement_id} not found")
        self.statement_id = statement_id


class StatementConflictError(LRSError):
    """Raised when a statement id is already taken in the store."""

    def __init__(self, statement_id: str):
        super().__init__(f"Statement {statement_id} already exists")
        self.statement_id = statement_id


class MalformedStatementError(LRSError):
    """Raised when a stored record exists but cannot be decoded."""
    pass


class StatementEncodingError(LRSError):
    """Raised when a statement cannot be serialized to its canonical form."""
    pass


class StoreError(LRSError):
    """Base exception for statement store failures."""
    pass


class StoreUnavailableError(StoreError):
    """Raised when the store cannot be reached or read."""
    pass


class StoreWriteError(StoreError):
    """Raised when the store did not durably accept a write."""
    pass
