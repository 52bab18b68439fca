"""CLI: Serve the snapshot API and run the recurring CoinGecko sync.

Example:
    coin-sync-server --port 3001
"""
from __future__ import annotations

import argparse

import uvicorn

from coin_sync.config import get_port, load_env_file
from coin_sync.log import get_logger


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Serve /api/monedas and keep coingecko_data in sync")
    p.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    p.add_argument("--port", type=int, default=None, help="Port to listen on (defaults to PORT or 3001)")
    return p.parse_args()


def main() -> int:
    load_env_file()
    args = parse_args()
    port = args.port or get_port()

    get_logger().info("Server listening on port %s", port)
    uvicorn.run("coin_sync.app:app", host=args.host, port=port, log_level="info")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
