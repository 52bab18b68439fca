"""CLI: Check the store behind /api/monedas.

Performs a SELECT 1, prints the Alembic revision, and reports whether the
coingecko_data table exists and how many symbols it holds. ``--create``
builds missing tables straight from the models (local/dev only; use
``alembic upgrade head`` elsewhere).
"""
from __future__ import annotations

import argparse

from coin_sync.config import get_database_url, load_env_file
from coin_sync.db.db_conn import DbConn


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check the coingecko_data store")
    parser.add_argument("--echo", action="store_true", help="Enable SQLAlchemy engine echo")
    parser.add_argument("--create", action="store_true", help="Create missing tables from the models")
    return parser.parse_args()


def main() -> int:
    load_env_file()

    url = get_database_url()
    if not url:
        print("DATABASE_URL not set or incomplete DB_* variables. Check resources/.env.")
        return 2

    args = parse_args()
    try:
        db = DbConn(db_url=url, echo=args.echo)
    except Exception as exc:
        print(f"Failed to configure engine: {exc}")
        return 2

    try:
        if not db.test_connection():
            print("Connection test: FAILED")
            return 1
        print("Connection test: OK")
        print(f"Alembic revision: {db.get_alembic_revision() or 'not found'}")

        if args.create:
            db.create_schema()
        if not db.has_coin_table():
            print("Table coingecko_data: missing (run `alembic upgrade head` or pass --create)")
            return 1
        print(f"Table coingecko_data: {db.count_coins()} symbols")
        return 0
    finally:
        db.dispose()


if __name__ == "__main__":
    raise SystemExit(main())
