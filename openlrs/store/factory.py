"""
Build the configured statement store backend.
"""

from typing import Optional

from openlrs.shared.config import StoreConfig, settings
from openlrs.shared.logging import get_logger
from openlrs.store.interface import StatementStore
from openlrs.store.memory import MemoryStatementStore
from openlrs.store.sqlite import SqliteStatementStore

logger = get_logger(__name__)


def create_store(config: Optional[StoreConfig] = None) -> StatementStore:
    """Create a store for ``config.backend`` (sqlite or memory)."""
    config = config or settings.store
    if config.backend == "memory":
        logger.info("Using in-memory statement store")
        return MemoryStatementStore()
    logger.info(f"Using SQLite statement store at {config.db_path}")
    return SqliteStatementStore(config.db_path, timeout=config.busy_timeout_seconds)
