"""CoinGecko market snapshot sync service."""

__version__ = "0.1.0"
