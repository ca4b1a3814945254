#!/usr/bin/env python3
"""Ensure the scoring schema exists and echo the DDL for reference."""

import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from matchplay.db import SCHEMA_STATEMENTS, ensure_schema
from matchplay.settings import load_settings


def main() -> None:
    settings = load_settings()
    ensure_schema(settings.database_url)
    print("Schema ensured.")
    print(f"Database url: {settings.database_url}")

    print("\nSchema DDL dump:")
    for statement in SCHEMA_STATEMENTS:
        print(statement.strip())


if __name__ == "__main__":
    main()
