from __future__ import annotations

from sqlalchemy import Column, Index, Integer, Numeric, String, UniqueConstraint

from coin_sync.db.base import Base


class CoinMarket(Base):
    __tablename__ = "coingecko_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Display name, e.g. Bitcoin.
    nombre = Column(String(200), nullable=True)
    # Ticker symbol as CoinGecko reports it (lower case), e.g. btc.
    simbolo = Column(String(50), nullable=False)
    # Logo URL.
    imagen = Column(String(512), nullable=True)
    # Latest price in the quote currency (USD).
    precio_actual = Column(Numeric(50, 24), nullable=True)
    market_cap_rank = Column(Integer, nullable=True)
    market_cap = Column(Numeric(38, 2), nullable=True)
    volumen_total = Column(Numeric(38, 2), nullable=True)

    __table_args__ = (
        UniqueConstraint("simbolo", name="uq_coingecko_data_simbolo"),
        Index("ix_coingecko_data_market_cap_rank", "market_cap_rank"),
    )
