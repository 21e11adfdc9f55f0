"""
Ticker Poller

One background task per exchange: every `rest_polling_delay` seconds it
fetches the ticker of each configured pair and keeps the latest value per
(exchange, pair) for the HTTP API.

Pollers of different exchanges run independently; a slow or failing
exchange does not delay the others.
"""

import asyncio
import contextlib
from typing import Dict, List, Optional, Tuple

from core.exchange_interface import ExchangeInterface
from core.logging import get_logger
from core.schemas import Ticker


# Latest ticker per (exchange, pair), shared by all pollers
_latest: Dict[Tuple[str, str], Ticker] = {}


def latest_tickers() -> List[Ticker]:
    """Snapshot of the most recent ticker of every polled pair."""
    return list(_latest.values())


def clear_latest_tickers() -> None:
    _latest.clear()


class TickerPoller:
    """
    Background ticker polling service for one exchange.

    Args:
        exchange: Initialized exchange handler
        pairs: Pairs to poll (defaults to the exchange's enabled_pairs)
        interval: Seconds between cycles (defaults to rest_polling_delay)
    """

    def __init__(self, exchange: ExchangeInterface, pairs: Optional[List[str]] = None,
                 interval: Optional[float] = None) -> None:
        self.exchange = exchange
        self.pairs = list(pairs if pairs is not None else exchange.config.enabled_pairs)
        self.interval = interval if interval is not None else exchange.config.rest_polling_delay
        self._logger = get_logger(f"services.ticker_poller.{exchange.name}")
        self._running = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running.is_set()

    async def start(self) -> None:
        if self._running.is_set():
            return
        self._running.set()
        if self.exchange.verbose:
            self._logger.info(f"{self.exchange.name} polling delay: {self.interval}s")
        self._logger.info(f"Starting {self.exchange.name} ticker poller for {', '.join(self.pairs) or 'no pairs'}")
        self._task = asyncio.create_task(self._run(), name=f"ticker_poller_{self.exchange.name}")

    async def stop(self) -> None:
        if not self._running.is_set():
            return
        self._logger.info(f"Stopping {self.exchange.name} ticker poller...")
        self._running.clear()
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    # ============================================
    # Core Loop
    # ============================================

    async def _run(self) -> None:
        while self._running.is_set() and self.exchange.is_enabled():
            await self.poll_once()
            await asyncio.sleep(self.interval)

        if not self.exchange.is_enabled():
            self._logger.info(f"{self.exchange.name} disabled; ticker poller exiting")
        self._running.clear()

    async def poll_once(self) -> List[Ticker]:
        """
        Fetch every configured pair once.

        Errors for one pair are logged and do not stop the others.
        """
        results = []
        for pair in self.pairs:
            try:
                ticker = await self.exchange.get_ticker(pair)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._logger.error(f"{self.exchange.name} ticker {pair} failed: {e}")
                continue

            _latest[(self.exchange.name, ticker.symbol)] = ticker
            results.append(ticker)
            self._logger.info(
                f"{self.exchange.name} {ticker.symbol}: Last {ticker.last} High {ticker.high} "
                f"Low {ticker.low} Volume {ticker.volume}"
            )

        return results
