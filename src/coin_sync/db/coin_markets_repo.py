from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from coin_sync.db.poco.coin_market import CoinMarket
from coin_sync.errors import StorageError

# Every column except the natural key is overwritten on conflict.
UPDATE_COLUMNS = (
    "nombre",
    "imagen",
    "precio_actual",
    "market_cap_rank",
    "market_cap",
    "volumen_total",
)


@dataclass(frozen=True)
class CoinMarketRow:
    name: Optional[str]
    symbol: str
    image: Optional[str]
    current_price: Optional[Decimal]
    market_cap_rank: Optional[int]
    market_cap: Optional[Decimal]
    total_volume: Optional[Decimal]

    def to_record(self) -> Dict[str, Any]:
        return {
            "nombre": self.name,
            "simbolo": self.symbol,
            "imagen": self.image,
            "precio_actual": self.current_price,
            "market_cap_rank": self.market_cap_rank,
            "market_cap": self.market_cap,
            "volumen_total": self.total_volume,
        }


class CoinMarketsRepo:
    """Repository for the latest CoinGecko snapshot, one row per symbol."""

    def upsert_many(self, session: Session, rows: Iterable[CoinMarketRow]) -> int:
        """Insert new symbols and overwrite existing ones in a single statement.

        Returns the driver-reported affected row count (MySQL counts an
        updated row twice), or the batch size when the driver reports none.
        """
        payload = _dedupe_by_symbol(r.to_record() for r in rows)
        if not payload:
            return 0

        stmt = self.build_upsert(session.get_bind().dialect.name, payload)
        result = session.execute(stmt)
        return result.rowcount if result.rowcount and result.rowcount > 0 else len(payload)

    def list_by_rank(self, session: Session) -> List[CoinMarket]:
        # "rank IS NULL" first: MySQL has no NULLS LAST.
        stmt = select(CoinMarket).order_by(
            CoinMarket.market_cap_rank.is_(None),
            CoinMarket.market_cap_rank.asc(),
            CoinMarket.simbolo.asc(),
        )
        return list(session.scalars(stmt).all())

    def get_by_symbol(self, session: Session, symbol: str) -> Optional[CoinMarket]:
        return session.scalars(select(CoinMarket).where(CoinMarket.simbolo == symbol)).first()

    def build_upsert(self, dialect: str, payload: List[Mapping[str, Any]]):
        """INSERT ... ON CONFLICT / ON DUPLICATE KEY for the given dialect name."""
        table = CoinMarket.__table__

        if dialect in ("mysql", "mariadb"):
            stmt = mysql_insert(table).values(payload)
            return stmt.on_duplicate_key_update({c: stmt.inserted[c] for c in UPDATE_COLUMNS})

        if dialect == "postgresql":
            stmt = pg_insert(table).values(payload)
        elif dialect == "sqlite":
            stmt = sqlite_insert(table).values(payload)
        else:
            raise StorageError(f"Upsert is not supported for dialect {dialect!r}")

        return stmt.on_conflict_do_update(
            index_elements=[table.c.simbolo],
            set_={c: stmt.excluded[c] for c in UPDATE_COLUMNS},
        )


def _dedupe_by_symbol(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # ON CONFLICT cannot touch the same row twice in one statement; keep the
    # last occurrence at the position of the first, as ON DUPLICATE KEY would.
    by_symbol: Dict[str, Dict[str, Any]] = {}
    for rec in records:
        by_symbol[rec["simbolo"]] = rec
    return list(by_symbol.values())
