"""Map CoinGecko ``/coins/markets`` records onto ``coingecko_data`` rows."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional

from coin_sync.db.coin_markets_repo import CoinMarketRow
from coin_sync.errors import MalformedPayloadError


def _to_decimal(value: Any, field: str, symbol: str) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedPayloadError(f"{symbol}: {field} is not numeric ({value!r})")
    try:
        # str() first so floats keep their shortest repr instead of binary noise
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise MalformedPayloadError(f"{symbol}: {field} is not numeric ({value!r})") from exc
    if not result.is_finite():
        raise MalformedPayloadError(f"{symbol}: {field} is not finite ({value!r})")
    return result


def _to_rank(value: Any, symbol: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedPayloadError(f"{symbol}: market_cap_rank is not an integer ({value!r})")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedPayloadError(f"{symbol}: market_cap_rank is not an integer ({value!r})") from exc


def market_to_row(item: Mapping[str, Any]) -> CoinMarketRow:
    if not isinstance(item, Mapping):
        raise MalformedPayloadError(f"Market record is not an object: {item!r}")

    symbol = item.get("symbol")
    if not isinstance(symbol, str) or not symbol.strip():
        raise MalformedPayloadError(f"Market record without symbol: id={item.get('id')!r}")

    return CoinMarketRow(
        name=item.get("name"),
        symbol=symbol,
        image=item.get("image"),
        current_price=_to_decimal(item.get("current_price"), "current_price", symbol),
        market_cap_rank=_to_rank(item.get("market_cap_rank"), symbol),
        market_cap=_to_decimal(item.get("market_cap"), "market_cap", symbol),
        total_volume=_to_decimal(item.get("total_volume"), "total_volume", symbol),
    )


def markets_to_rows(items: Iterable[Mapping[str, Any]]) -> List[CoinMarketRow]:
    """Transform the whole payload; one bad record rejects the batch."""
    return [market_to_row(item) for item in items]
