import time

from sqlalchemy import func, select

from coin_sync.db.poco.coin_market import CoinMarket
from coin_sync.sync.engine import CycleSuccess
from coin_sync.sync.service import SyncService

from conftest import FakeCoinGeckoClient, market


def _count(db):
    with db.session_scope() as s:
        return s.scalar(select(func.count()).select_from(CoinMarket))


def test_service_wires_engine_from_environment(db, monkeypatch):
    monkeypatch.setenv("SYNC_PER_PAGE", "50")
    monkeypatch.setenv("SYNC_VS_CURRENCY", "EUR")
    monkeypatch.setenv("SYNC_INTERVAL_SECONDS", "120")

    service = SyncService(db, client=FakeCoinGeckoClient())

    assert service.engine.per_page == 50
    assert service.engine.vs_currency == "eur"
    assert service.scheduler.interval_seconds == 120.0
    assert service.engine.db is db


def test_run_once_merges_snapshot(db, monkeypatch):
    monkeypatch.setenv("COINGECKO_API_KEY", "k")
    service = SyncService(db, client=FakeCoinGeckoClient(payload=[market("btc", 1), market("eth", 2)]))

    assert isinstance(service.run_once(), CycleSuccess)
    assert _count(db) == 2


def test_start_runs_first_cycle_immediately(db, monkeypatch):
    monkeypatch.setenv("COINGECKO_API_KEY", "k")
    client = FakeCoinGeckoClient(payload=[market("btc", 1)])
    service = SyncService(db, client=client, interval_seconds=60)

    service.start()
    try:
        assert client.entered.wait(timeout=2.0)
        deadline = time.monotonic() + 2.0
        while service.engine.busy and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        service.stop()

    assert service.scheduler.ticks == 1
    assert not service.scheduler.running
    assert _count(db) == 1
