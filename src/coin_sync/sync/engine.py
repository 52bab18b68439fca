"""One synchronization cycle: credential check, fetch, transform, merge.

``SyncEngine.run_cycle`` never raises. Every failure is turned into a
``CycleFailure`` and logged; the scheduler only looks at the outcome for
logging, so the next tick is the retry mechanism.
"""
from __future__ import annotations

import itertools
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError

from coin_sync.api.coingecko_client import CoinGeckoClient
from coin_sync.config import get_coingecko_api_key
from coin_sync.db.coin_markets_repo import CoinMarketRow, CoinMarketsRepo
from coin_sync.db.db_conn import DbConn
from coin_sync.errors import ConfigurationError, StorageError, SyncError
from coin_sync.log import CYCLE_CTX, get_logger
from coin_sync.sync.transform import markets_to_rows

logger = get_logger("sync")


@dataclass(frozen=True)
class CycleSuccess:
    affected_rows: int
    fetched: int = 0
    ok = True


@dataclass(frozen=True)
class CycleFailure:
    kind: str
    detail: str
    ok = False


@dataclass(frozen=True)
class CycleSkipped:
    reason: str = "previous cycle still running"
    ok = False


CycleOutcome = Union[CycleSuccess, CycleFailure, CycleSkipped]


class SyncEngine:
    """Runs sync cycles against the CoinGecko markets listing.

    Holds no state between cycles apart from the in-flight lock and a cycle
    counter used to tag log lines.
    """

    def __init__(
        self,
        db: DbConn,
        client: CoinGeckoClient,
        repo: Optional[CoinMarketsRepo] = None,
        api_key_provider: Callable[[], Optional[str]] = get_coingecko_api_key,
        vs_currency: str = "usd",
        per_page: int = 100,
    ) -> None:
        self.db = db
        self.client = client
        self.repo = repo or CoinMarketsRepo()
        self._api_key_provider = api_key_provider
        self.vs_currency = vs_currency
        self.per_page = per_page
        self._in_flight = threading.Lock()
        self._cycle_ids = itertools.count(1)

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def run_cycle(self) -> CycleOutcome:
        if not self._in_flight.acquire(blocking=False):
            outcome = CycleSkipped()
            logger.warning("CoinGecko sync skipped: %s", outcome.reason)
            return outcome

        token = CYCLE_CTX.set(next(self._cycle_ids))
        started = time.monotonic()
        try:
            logger.info("Starting CoinGecko sync...")
            outcome = self._execute()
            logger.info(
                "Database updated successfully. fetched=%s affected_rows=%s (%.2fs)",
                outcome.fetched,
                outcome.affected_rows,
                time.monotonic() - started,
            )
            return outcome
        except SyncError as exc:
            logger.error("CoinGecko sync failed (%s): %s", exc.kind, exc, exc_info=True)
            return CycleFailure(kind=exc.kind, detail=str(exc))
        except Exception as exc:
            logger.exception("CoinGecko sync failed with an unexpected error: %s", exc)
            return CycleFailure(kind=SyncError.kind, detail=f"{type(exc).__name__}: {exc}")
        finally:
            CYCLE_CTX.reset(token)
            self._in_flight.release()

    def fetch_rows(self) -> Tuple[List[Dict[str, Any]], List[CoinMarketRow]]:
        """Credential check, fetch and transform; no store access."""
        api_key = self._api_key_provider()
        if not api_key:
            raise ConfigurationError("COINGECKO_API_KEY environment variable is not set.")

        markets = self.client.fetch_markets(api_key, vs_currency=self.vs_currency, per_page=self.per_page, page=1)
        return markets, markets_to_rows(markets)

    def _execute(self) -> CycleSuccess:
        markets, rows = self.fetch_rows()
        try:
            with self.db.session_scope() as session:
                affected = self.repo.upsert_many(session, rows)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to upsert {len(rows)} coin market rows: {exc}") from exc
        return CycleSuccess(affected_rows=affected, fetched=len(markets))
