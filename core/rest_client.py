"""
Base REST Client

Async HTTP transport shared by the exchange API clients. It handles:
- aiohttp session lifecycle (async context manager)
- Public GET requests with retry logic (429, 418, 503, timeouts)
- Sending signed requests produced by core.signing, body bytes unchanged
- Error reporting through ExchangeAPIError

Signed requests are sent exactly once. A retry would need a fresh nonce and
therefore a fresh signature, so retrying is left to the caller, who must
sign again.

Usage:
    class LiquiAPIClient(BaseRESTClient):
        exchange = "liqui"
        BASE_URL = "https://api.liqui.io"

    async with LiquiAPIClient() as client:
        data = await client._get("/api/3/ticker/eth_btc")
"""

import asyncio
import time
from typing import Any, Dict, Optional

import aiohttp
from yarl import URL

from core.errors import ExchangeAPIError
from core.logging import get_logger, log_api_request, log_api_response
from core.signing import SignedRequest


RETRYABLE_STATUSES = (429, 418, 503)


class BaseRESTClient:
    """
    Async HTTP client base for exchange REST APIs.

    Attributes:
        exchange: Exchange name used in logs and errors
        BASE_URL: Root URL that relative paths are joined to
        timeout: Total request timeout in seconds
        max_attempts: Attempts for public GET requests
        verbose: Log raw request bodies and responses at INFO
    """

    exchange: str = "exchange"
    BASE_URL: str = ""

    def __init__(self, timeout: float = 10, max_attempts: int = 3, verbose: bool = False):
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.verbose = verbose
        self.logger = get_logger(f"exchanges.{self.exchange}.api_client")
        self.session: Optional[aiohttp.ClientSession] = None

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        self.logger.debug(f"{self.__class__.__name__} session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug(f"{self.__class__.__name__} session closed")

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.BASE_URL}{path}"

    def _require_session(self) -> aiohttp.ClientSession:
        if not self.session:
            raise RuntimeError("Client session not initialized. Use 'async with' statement.")
        return self.session

    # ============================================
    # Public Requests with Retry Logic
    # ============================================

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a public endpoint and decode its JSON body.

        Retry delay on rate limits: 1.5s * (attempt + 1).
        Retry delay on timeouts/connection errors: 1.0s * (attempt + 1).

        Raises:
            ExchangeAPIError: On a non-retryable status, an undecodable body, or
                when all attempts fail
        """
        session = self._require_session()
        url = self._url(path)
        log_api_request(self.exchange, "GET", path, params)

        for attempt in range(self.max_attempts):
            started = time.monotonic()
            try:
                async with session.get(url, params=params) as resp:
                    log_api_response(self.exchange, path, resp.status, time.monotonic() - started)

                    if resp.status == 200:
                        data = await self._decode_json(resp, path)
                        if self.verbose:
                            self.logger.info(f"Received raw: {data}")
                        return data

                    if resp.status in RETRYABLE_STATUSES:
                        delay = 1.5 * (attempt + 1)
                        self.logger.warning(
                            f"Rate limited (HTTP {resp.status}) on {path}. "
                            f"Retrying in {delay:.1f}s... (attempt {attempt + 1}/{self.max_attempts})"
                        )
                        await asyncio.sleep(delay)
                        continue

                    text = await resp.text()
                    self.logger.error(f"HTTP {resp.status} on {path}: {text}")
                    raise ExchangeAPIError(self.exchange, f"HTTP {resp.status} on {path}: {text}",
                                           status=resp.status)

            except asyncio.TimeoutError:
                self.logger.error(f"Timeout on {path} (attempt {attempt + 1}/{self.max_attempts})")
                await asyncio.sleep(1.0 * (attempt + 1))

            except aiohttp.ClientError as e:
                self.logger.error(f"Request failed on {path}: {e} (attempt {attempt + 1}/{self.max_attempts})")
                await asyncio.sleep(1.0 * (attempt + 1))

        raise ExchangeAPIError(self.exchange, f"Failed to fetch {url} after {self.max_attempts} attempts")

    async def _decode_json(self, resp: aiohttp.ClientResponse, path: str) -> Any:
        try:
            return await resp.json(content_type=None)
        except ValueError as e:
            text = await resp.text()
            self.logger.error(f"Invalid JSON from {path}: {text[:200]}")
            raise ExchangeAPIError(self.exchange, f"Invalid JSON on {path}: {e}",
                                   status=resp.status) from e

    # ============================================
    # Signed Requests
    # ============================================

    async def _send(self, signed: SignedRequest) -> Any:
        """
        Send a signed request once and decode its JSON body.

        The body is transmitted as the exact bytes that were signed, and the
        URL (query string included) is not re-encoded.

        Raises:
            ExchangeAPIError: On transport failure, a non-2xx status or an
                undecodable body
        """
        session = self._require_session()
        log_api_request(self.exchange, signed.method, signed.url, {"nonce": signed.nonce})
        if self.verbose and signed.body:
            self.logger.info(f"Request body: {signed.body}")

        data = signed.body.encode("utf-8") if signed.body else None
        started = time.monotonic()
        try:
            async with session.request(signed.method, URL(signed.url, encoded=True), data=data,
                                       headers=signed.headers) as resp:
                log_api_response(self.exchange, signed.url, resp.status, time.monotonic() - started)
                text = await resp.text()
                if self.verbose:
                    self.logger.info(f"Received raw: {text}")

                if not 200 <= resp.status < 300:
                    raise ExchangeAPIError(self.exchange, f"HTTP {resp.status} on {signed.url}: {text}",
                                           status=resp.status)
                if not text:
                    return None
                return await self._decode_json(resp, signed.url)

        except asyncio.TimeoutError as e:
            raise ExchangeAPIError(self.exchange, f"Timeout on {signed.method} {signed.url}") from e
        except aiohttp.ClientError as e:
            raise ExchangeAPIError(self.exchange, f"Request failed on {signed.method} {signed.url}: {e}") from e
