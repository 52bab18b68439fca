from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import mysql, postgresql

from coin_sync.db.coin_markets_repo import UPDATE_COLUMNS, CoinMarketsRepo
from coin_sync.db.poco.coin_market import CoinMarket
from coin_sync.errors import StorageError
from coin_sync.sync.transform import markets_to_rows

from conftest import market


def _snapshot(db):
    with db.session_scope() as s:
        return [
            (r.simbolo, r.nombre, r.imagen, r.precio_actual, r.market_cap_rank, r.market_cap, r.volumen_total)
            for r in s.scalars(select(CoinMarket).order_by(CoinMarket.simbolo)).all()
        ]


def _merge(db, items):
    repo = CoinMarketsRepo()
    with db.session_scope() as s:
        return repo.upsert_many(s, markets_to_rows(items))


def test_upsert_inserts_new_symbols(db):
    affected = _merge(db, [market("btc", 1, 65000), market("eth", 2, 3000)])

    assert affected == 2
    assert [row[0] for row in _snapshot(db)] == ["btc", "eth"]


def test_upsert_is_idempotent(db):
    batch = [market("btc", 1, 65000), market("eth", 2, 3000)]
    _merge(db, batch)
    once = _snapshot(db)

    _merge(db, batch)

    assert _snapshot(db) == once


def test_upsert_overwrites_every_non_key_field(db):
    _merge(db, [market("btc", 1, 65000, name="Bitcoin")])
    _merge(
        db,
        [
            {
                "name": "Bitcoin (renamed)",
                "symbol": "btc",
                "image": "https://img.test/new.png",
                "current_price": 70000,
                "market_cap_rank": 2,
                "market_cap": None,
                "total_volume": 1,
            }
        ],
    )

    repo = CoinMarketsRepo()
    with db.session_scope() as s:
        row = repo.get_by_symbol(s, "btc")
        assert row.nombre == "Bitcoin (renamed)"
        assert row.imagen == "https://img.test/new.png"
        assert row.precio_actual == Decimal("70000")
        assert row.market_cap_rank == 2
        assert row.market_cap is None
        assert row.volumen_total == Decimal("1")


def test_symbols_missing_from_later_batch_keep_their_row(db):
    _merge(db, [market("btc", 1, 65000), market("lost", 100, 0.5)])
    lost_before = [r for r in _snapshot(db) if r[0] == "lost"]

    _merge(db, [market("btc", 1, 66000), market("new", 99, 2.0)])

    after = _snapshot(db)
    assert [r[0] for r in after] == ["btc", "lost", "new"]
    assert [r for r in after if r[0] == "lost"] == lost_before


def test_duplicate_symbols_in_one_batch_keep_last_occurrence(db):
    _merge(db, [market("uni", 20, 7.0, name="Uniswap"), market("uni", 95, 0.01, name="Universe")])

    snap = _snapshot(db)
    assert len(snap) == 1
    assert snap[0][1] == "Universe"
    assert snap[0][4] == 95


def test_repeated_cycles_never_duplicate_symbols(db):
    for price in (1.0, 2.0, 3.0):
        _merge(db, [market("btc", 1, price), market("eth", 2, price)])

    symbols = [r[0] for r in _snapshot(db)]
    assert symbols == sorted(set(symbols))
    assert len(symbols) == 2


def test_empty_batch_touches_nothing(db):
    assert _merge(db, []) == 0
    assert _snapshot(db) == []


def test_list_by_rank_orders_ascending_with_null_ranks_last(db):
    _merge(db, [market("c", 3), market("a", 1), {"symbol": "z", "market_cap_rank": None}, market("b", 2)])

    with db.session_scope() as s:
        ranked = [r.simbolo for r in CoinMarketsRepo().list_by_rank(s)]

    assert ranked == ["a", "b", "c", "z"]


def _compiled_upsert(dialect_name, dialect):
    payload = [r.to_record() for r in markets_to_rows([market("btc", 1), market("eth", 2)])]
    stmt = CoinMarketsRepo().build_upsert(dialect_name, payload)
    return str(stmt.compile(dialect=dialect))


def test_postgresql_upsert_overwrites_non_key_columns_on_conflict():
    sql = _compiled_upsert("postgresql", postgresql.dialect())

    assert "ON CONFLICT (simbolo) DO UPDATE SET" in sql
    update_clause = sql.split("DO UPDATE SET", 1)[1]
    for column in UPDATE_COLUMNS:
        assert f"{column} = excluded.{column}" in update_clause
    assert "simbolo" not in update_clause


def test_mysql_upsert_uses_on_duplicate_key_update():
    sql = _compiled_upsert("mysql", mysql.dialect())

    assert "ON DUPLICATE KEY UPDATE" in sql
    update_clause = sql.split("ON DUPLICATE KEY UPDATE", 1)[1]
    for column in UPDATE_COLUMNS:
        assert f"{column} =" in update_clause
    assert "simbolo" not in update_clause


def test_unsupported_dialect_raises_storage_error():
    with pytest.raises(StorageError):
        CoinMarketsRepo().build_upsert("oracle", [{"simbolo": "btc"}])


def test_tiny_prices_keep_their_digits(db):
    assert CoinMarket.__table__.c.precio_actual.type.scale >= 18

    _merge(db, [{"symbol": "dust", "current_price": 1.234567e-13, "market_cap_rank": 100}])

    with db.session_scope() as s:
        assert CoinMarketsRepo().get_by_symbol(s, "dust").precio_actual == Decimal("1.234567E-13")
