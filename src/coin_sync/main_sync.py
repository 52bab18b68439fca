"""CLI: Run a single CoinGecko sync cycle and exit.

Example:
    coin-sync-once
    coin-sync-once --dry-run
"""
from __future__ import annotations

import argparse
import json

from coin_sync.api.coingecko_client import CoinGeckoClient
from coin_sync.config import get_coingecko_api_key, get_database_url, get_sync_config, load_env_file
from coin_sync.db.db_conn import DbConn
from coin_sync.errors import SyncError
from coin_sync.sync.engine import CycleSuccess, SyncEngine
from coin_sync.sync.transform import markets_to_rows


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fetch the CoinGecko top markets and upsert them into coingecko_data")
    p.add_argument("--dry-run", action="store_true", help="Fetch and transform only; print rows instead of writing")
    p.add_argument("--echo", action="store_true", help="Enable SQLAlchemy engine echo")
    return p.parse_args()


def main() -> int:
    load_env_file()
    args = parse_args()

    if not get_coingecko_api_key():
        print("Missing COINGECKO_API_KEY in environment/resources/.env")
        return 2

    cfg = get_sync_config()
    client = CoinGeckoClient()

    if args.dry_run:
        try:
            markets = client.fetch_markets(
                str(get_coingecko_api_key()),
                vs_currency=str(cfg["SYNC_VS_CURRENCY"]),
                per_page=int(cfg["SYNC_PER_PAGE"]),  # type: ignore[arg-type]
            )
            rows = markets_to_rows(markets)
        except SyncError as exc:
            print(f"Failed to fetch CoinGecko markets: {exc}")
            return 1
        print(json.dumps([r.to_record() for r in rows], indent=2, default=str, ensure_ascii=False))
        return 0

    if not get_database_url():
        print("DATABASE_URL not set or incomplete DB_* variables. Check resources/.env.")
        return 2

    db = DbConn(echo=args.echo)
    try:
        engine = SyncEngine(db, client, vs_currency=str(cfg["SYNC_VS_CURRENCY"]), per_page=int(cfg["SYNC_PER_PAGE"]))  # type: ignore[arg-type]
        outcome = engine.run_cycle()
    finally:
        db.dispose()

    if isinstance(outcome, CycleSuccess):
        print(f"Fetched {outcome.fetched} markets, affected {outcome.affected_rows} rows")
        return 0
    print(f"Sync failed: {outcome}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
