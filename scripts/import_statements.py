"""
CLI entry point for bulk statement import.
"""

import argparse
import json
import sys
from pathlib import Path

from openlrs.model.statement import Statement
from openlrs.service.statements import StatementService
from openlrs.shared.config import settings
from openlrs.shared.exceptions import LRSError
from openlrs.shared.logging import setup_logging
from openlrs.store.sqlite import SqliteStatementStore


def load_statements(path: Path) -> list[Statement]:
    """Read a JSON file holding one statement or an array of statements."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = [data]
    return [Statement.from_dict(item) for item in data]


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Import xAPI statements into OpenLRS")
    parser.add_argument("file", type=Path, help="JSON file with statements")
    parser.add_argument(
        "--db",
        type=Path,
        default=Path(settings.store.db_path),
        help="SQLite statement database path"
    )

    args = parser.parse_args(argv)

    setup_logging()

    try:
        statements = load_statements(args.file)
        service = StatementService(SqliteStatementStore(args.db))
        ids = service.post_statements(statements)
    except (OSError, json.JSONDecodeError, LRSError) as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1

    print("\n" + "=" * 50)
    print("Statement Import Summary")
    print("=" * 50)
    print(f"Statements stored: {len(ids)}")
    print(f"Database: {args.db}")
    print("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(main())
