from __future__ import annotations

from typing import Optional

from coin_sync.api.coingecko_client import CoinGeckoClient
from coin_sync.config import get_sync_config
from coin_sync.db.db_conn import DbConn
from coin_sync.sync.engine import CycleOutcome, SyncEngine
from coin_sync.sync.scheduler import SyncScheduler


class SyncService:
    """Owns the store handle, the upstream client, the engine and its schedule.

    Built once at startup; ``start`` runs the first cycle right away and
    then every interval until ``stop``.
    """

    def __init__(
        self,
        db: DbConn,
        client: Optional[CoinGeckoClient] = None,
        engine: Optional[SyncEngine] = None,
        interval_seconds: Optional[float] = None,
    ) -> None:
        cfg = get_sync_config()
        self.db = db
        self.client = client or CoinGeckoClient()
        self.engine = engine or SyncEngine(
            db,
            self.client,
            vs_currency=str(cfg["SYNC_VS_CURRENCY"]),
            per_page=int(cfg["SYNC_PER_PAGE"]),  # type: ignore[arg-type]
        )
        interval = interval_seconds if interval_seconds is not None else float(cfg["SYNC_INTERVAL_SECONDS"])  # type: ignore[arg-type]
        self.scheduler = SyncScheduler(self.engine.run_cycle, interval)

    @classmethod
    def from_env(cls, echo: bool = False) -> "SyncService":
        return cls(DbConn(echo=echo))

    def start(self) -> None:
        self.scheduler.start()

    def stop(self, timeout: float = 2.0) -> None:
        self.scheduler.stop(timeout=timeout)

    def run_once(self) -> CycleOutcome:
        return self.engine.run_cycle()
