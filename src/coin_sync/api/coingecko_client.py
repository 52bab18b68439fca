"""CoinGecko market data client responsible for the ranked markets listing."""
from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Callable, Dict, List, Optional

from coin_sync.config import get_coingecko_api_config
from coin_sync.errors import MalformedPayloadError, UpstreamError


class CoinGeckoApiError(UpstreamError):
    """Raised when the CoinGecko API responds with an error or the request fails."""


class CoinGeckoClient:
    """Thin helper around the ``/coins/markets`` endpoint.

    Base URL and timeout default to the central config module (see
    ``coin_sync/config.py``). The API key is passed per call so that it can
    be re-read from the environment on every sync cycle.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        urlopen: Callable[..., Any] = urllib.request.urlopen,
    ) -> None:
        """
        Create a new CoinGecko client.

        Parameters:
            base_url: API root. Defaults to COINGECKO_BASE_URL.
            timeout: Request timeout in seconds. Defaults to COINGECKO_TIMEOUT_SECONDS.
            urlopen: Opener used to issue the request; swapped in tests.
        """
        cfg = get_coingecko_api_config()
        self.base_url = (base_url or str(cfg["COINGECKO_BASE_URL"])).rstrip("/")
        self.timeout = float(timeout if timeout is not None else cfg["COINGECKO_TIMEOUT_SECONDS"])  # type: ignore[arg-type]
        self._urlopen = urlopen

    def build_markets_request(
        self,
        api_key: str,
        vs_currency: str = "usd",
        per_page: int = 100,
        page: int = 1,
    ) -> urllib.request.Request:
        # Key goes in both the query string and the header.
        params = {
            "vs_currency": vs_currency,
            "order": "market_cap_desc",
            "per_page": str(per_page),
            "page": str(page),
            "sparkline": "false",
            "x_cg_demo_api_key": api_key,
        }
        url = f"{self.base_url}/coins/markets?{urllib.parse.urlencode(params)}"
        return urllib.request.Request(
            url,
            method="GET",
            headers={
                "x-cg-demo-api-key": api_key,
                "Accept": "application/json",
            },
        )

    def fetch_markets(
        self,
        api_key: str,
        vs_currency: str = "usd",
        per_page: int = 100,
        page: int = 1,
    ) -> List[Dict[str, Any]]:
        """
        Retrieve one page of assets ranked by market cap, descending.

        Returns:
            The decoded JSON array, one dict per asset.

        Raises:
            CoinGeckoApiError: On non-2xx status, network failure or timeout.
            MalformedPayloadError: When the body is not a JSON array.
        """
        req = self.build_markets_request(api_key, vs_currency=vs_currency, per_page=per_page, page=page)
        try:
            with self._urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            body = _read_error_body(exc)
            raise CoinGeckoApiError(
                f"CoinGecko API error {exc.code} {exc.reason}. Body: {body}",
                status=exc.code,
                body=body,
            ) from exc
        except (urllib.error.URLError, http.client.HTTPException, TimeoutError, OSError) as exc:
            raise CoinGeckoApiError(f"Failed to reach CoinGecko: {exc}") from exc

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise MalformedPayloadError(f"CoinGecko returned a non-JSON body: {exc}") from exc

        if not isinstance(payload, list):
            raise MalformedPayloadError(
                f"Expected a JSON array from /coins/markets, got {type(payload).__name__}: {str(payload)[:500]}"
            )
        return payload


def _read_error_body(exc: urllib.error.HTTPError) -> str:
    try:
        data = exc.read()
    except OSError:
        return ""
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")
