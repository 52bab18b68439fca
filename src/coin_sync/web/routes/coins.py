from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coin_sync.db.coin_markets_repo import CoinMarketsRepo
from coin_sync.log import get_logger
from coin_sync.web.deps import get_db

router = APIRouter(prefix="/api", tags=["coins"])
repo = CoinMarketsRepo()
logger = get_logger("web")

READ_ERROR = {"error": "Error al consultar la base de datos"}


class CoinMarketOut(BaseModel):
    id: int
    nombre: Optional[str] = None
    simbolo: str
    imagen: Optional[str] = None
    precio_actual: Optional[float] = None
    market_cap_rank: Optional[int] = None
    market_cap: Optional[float] = None
    volumen_total: Optional[float] = None


def _num(value) -> Optional[float]:
    return float(value) if value is not None else None


@router.get("/monedas", response_model=List[CoinMarketOut])
def list_coin_markets(session: Session = Depends(get_db)) -> Union[List[CoinMarketOut], JSONResponse]:
    """Latest persisted snapshot ordered by market cap rank (ascending)."""
    try:
        rows = repo.list_by_rank(session)
    except SQLAlchemyError:
        logger.exception("Failed to read coingecko_data")
        return JSONResponse(status_code=500, content=READ_ERROR)

    return [
        CoinMarketOut(
            id=r.id,
            nombre=r.nombre,
            simbolo=r.simbolo,
            imagen=r.imagen,
            precio_actual=_num(r.precio_actual),
            market_cap_rank=r.market_cap_rank,
            market_cap=_num(r.market_cap),
            volumen_total=_num(r.volumen_total),
        )
        for r in rows
    ]
