"""Shared fixtures: SQLite-backed DbConn and a scriptable CoinGecko client."""
from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

import pytest

from coin_sync.db.db_conn import DbConn


def market(symbol: str, rank: int, price: float = 1.0, name: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    item = {
        "id": (name or symbol).lower(),
        "name": name or symbol.upper(),
        "symbol": symbol,
        "image": f"https://assets.coingecko.com/coins/images/{rank}/large/{symbol}.png",
        "current_price": price,
        "market_cap_rank": rank,
        "market_cap": price * 1_000_000,
        "total_volume": price * 10_000,
    }
    item.update(extra)
    return item


class FakeCoinGeckoClient:
    """Stand-in for CoinGeckoClient returning scripted payloads."""

    def __init__(self, payload: Optional[List[Dict[str, Any]]] = None, exception: Optional[Exception] = None) -> None:
        self.payload = payload if payload is not None else []
        self.exception = exception
        self.calls: List[Dict[str, Any]] = []
        self.entered = threading.Event()
        self.release: Optional[threading.Event] = None

    def fetch_markets(self, api_key: str, vs_currency: str = "usd", per_page: int = 100, page: int = 1):
        self.calls.append({"api_key": api_key, "vs_currency": vs_currency, "per_page": per_page, "page": page})
        self.entered.set()
        if self.release is not None:
            self.release.wait(timeout=5.0)
        if self.exception:
            raise self.exception
        return self.payload


@pytest.fixture
def db(tmp_path) -> DbConn:
    conn = DbConn(db_url=f"sqlite:///{tmp_path / 'coins.db'}", connect_args={"check_same_thread": False})
    conn.create_schema()
    yield conn
    conn.dispose()


@pytest.fixture
def bare_db(tmp_path) -> DbConn:
    """Database without the coingecko_data table."""
    conn = DbConn(db_url=f"sqlite:///{tmp_path / 'empty.db'}", connect_args={"check_same_thread": False})
    yield conn
    conn.dispose()
