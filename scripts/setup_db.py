#!/usr/bin/env python3
"""Provision the relational store for customer sites.

Creates the database (and the customer_sites table) and records its URL
in an env file so the API picks it up on the next start.

Usage:
    python scripts/setup_db.py [--database-url URL] [--env-file PATH]

Exit codes:
    0: Database ready and env file updated
    1: Database creation or env file update failed
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from customer_sites.config import DEFAULT_DATABASE_URL  # noqa: E402
from customer_sites.storage.base import StorageError  # noqa: E402
from customer_sites.storage.relational import RelationalSiteStorage  # noqa: E402

ENV_KEY = "SITES_DATABASE_URL"


def create_database(database_url: str) -> bool:
    """Create the database and table if missing."""
    print(f"Creating database: {database_url}")
    try:
        storage = RelationalSiteStorage.from_url(database_url)
        storage.ensure_schema()
    except StorageError as e:
        print(f"FAIL: Could not create database: {e}")
        return False
    print("OK: customer_sites table ready")
    return True


def update_env_file(env_path: Path, database_url: str) -> bool:
    """Write or replace the database URL entry in env_path."""
    lines: list[str] = []
    if env_path.exists():
        lines = env_path.read_text(encoding="utf-8").splitlines()

    entry = f"{ENV_KEY}={database_url}"
    replaced = False
    for i, line in enumerate(lines):
        if line.split("=", 1)[0].strip() == ENV_KEY:
            lines[i] = entry
            replaced = True

    if not replaced:
        lines.append(entry)

    try:
        env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as e:
        print(f"FAIL: Could not update {env_path}: {e}")
        print(f"Add this line manually: {entry}")
        return False

    print(f"OK: {env_path} updated")
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Provision the customer sites database")
    parser.add_argument("--database-url", default=DEFAULT_DATABASE_URL)
    parser.add_argument("--env-file", type=Path, default=PROJECT_ROOT / ".env")
    args = parser.parse_args(argv)

    if not create_database(args.database_url):
        return 1
    if not update_env_file(args.env_file, args.database_url):
        return 1

    print("\nNext steps:")
    print("1. Set PASSWORD in the environment or .env")
    print("2. Start the API: uvicorn customer_sites.api.app:app")
    return 0


if __name__ == "__main__":
    sys.exit(main())
