#!/usr/bin/env python
"""Create the attendance payroll tables.

Usage:
    python scripts/create_schema.py
    python scripts/create_schema.py --database-url postgresql+asyncpg://...
    python scripts/create_schema.py --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import CreateTable

from attendance_payroll.config import get_settings
from attendance_payroll.database import create_schema, get_engine
from attendance_payroll.models import Base


def print_ddl() -> None:
    """Print PostgreSQL DDL for every table, dependencies first."""
    dialect = postgresql.dialect()
    for table in Base.metadata.sorted_tables:
        print(f"{CreateTable(table).compile(dialect=dialect)};".strip())
        print()


async def apply(database_url: str) -> None:
    engine = get_engine(database_url)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create attendance payroll tables")
    parser.add_argument(
        "--database-url",
        default=get_settings().database_url,
        help="Async database URL",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the DDL without connecting",
    )
    args = parser.parse_args()

    if args.dry_run:
        print_ddl()
        return 0

    target = args.database_url.split("@")[-1]
    print(f"Creating tables on {target}")
    try:
        asyncio.run(apply(args.database_url))
    except SQLAlchemyError as e:
        print(f"FAILED: {e}")
        return 1

    print(f"OK: {len(Base.metadata.sorted_tables)} tables present")
    return 0


if __name__ == "__main__":
    sys.exit(main())
