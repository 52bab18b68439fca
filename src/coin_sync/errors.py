"""Failure taxonomy for the sync cycle.

Each error carries a ``kind`` that ends up in ``CycleFailure.kind``.
"""
from __future__ import annotations

from typing import Optional


class SyncError(RuntimeError):
    """Base class for failures contained inside a single sync cycle."""

    kind = "unexpected"


class ConfigurationError(SyncError):
    """A required setting (e.g. the CoinGecko API key) is missing."""

    kind = "configuration"


class UpstreamError(SyncError):
    """The market data source failed or answered with a non-success status."""

    kind = "upstream"

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class MalformedPayloadError(UpstreamError):
    """The upstream answered successfully but the payload cannot be mapped."""

    kind = "payload"


class StorageError(SyncError):
    """The merge against the relational store failed."""

    kind = "storage"
