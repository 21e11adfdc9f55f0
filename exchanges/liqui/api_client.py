"""
Liqui REST API Client

Async client for Liqui's public API (/api/3) and trade API (/tapi).

Public endpoints take one or more pairs joined with "-" and answer with a
mapping keyed by pair:

    GET /api/3/ticker/eth_btc  ->  {"eth_btc": {"last": 0.05, ...}}

Trade API calls are POSTed to /tapi as a form body carrying "method" and a
strictly increasing "nonce". The body is signed with HMAC-SHA512 (hex) and
sent with "Key" and "Sign" headers (see core.signing.LIQUI_SCHEME).
Responses are wrapped:

    {"success": 1, "return": {...}}
    {"success": 0, "error": "invalid api key"}

API Documentation:
    https://liqui.io/api

Usage:
    async with LiquiAPIClient(signer_source=exchange.require_signer) as client:
        ticker = await client.get_ticker("eth_btc")
        info = await client.get_account_info()
"""

from typing import Any, Callable, Dict, List, Optional

from core.errors import ExchangeAPIError
from core.rest_client import BaseRESTClient
from core.schemas import Orderbook, OrderbookEntry, Ticker, Trade
from core.signing import RequestSigner
from core.utils.time import to_utc_datetime, utc_now
from exchanges.liqui.models import (
    LiquiAccountInfo,
    LiquiCancelResult,
    LiquiInfo,
    LiquiOrder,
    LiquiTicker,
    LiquiTradeHistoryEntry,
    LiquiTradeResult,
    LiquiWithdrawResult,
)


LIQUI_API_VERSION = "3"


class LiquiAPIClient(BaseRESTClient):
    """
    Async HTTP client for the Liqui public and trade APIs.

    Args:
        signer_source: Returns the RequestSigner for trade API calls; raises
            if credentials are unavailable. Public endpoints never call it.
        timeout: Request timeout in seconds
        verbose: Log request bodies and raw responses
    """

    exchange = "liqui"
    BASE_URL = "https://api.liqui.io"
    PUBLIC_PATH = f"/api/{LIQUI_API_VERSION}"
    TRADE_PATH = "/tapi"

    def __init__(self, signer_source: Optional[Callable[[], RequestSigner]] = None,
                 timeout: float = 10, verbose: bool = False):
        super().__init__(timeout=timeout, verbose=verbose)
        self._signer_source = signer_source

    # ============================================
    # Public API
    # ============================================

    async def _public(self, endpoint: str, pair: Optional[str] = None) -> Any:
        path = f"{self.PUBLIC_PATH}/{endpoint}"
        if pair:
            path += f"/{pair.lower()}"
        data = await self._get(path)
        if isinstance(data, dict) and data.get("success") == 0:
            raise ExchangeAPIError(self.exchange, str(data.get("error", "unknown error")))
        return data

    async def get_info(self) -> LiquiInfo:
        """Fetch server time and the pair list with trading limits."""
        data = await self._public("info")
        return LiquiInfo.model_validate(data)

    async def get_ticker(self, pair: str) -> Ticker:
        """
        Fetch the ticker for one pair.

        Liqui's "buy" is the best bid and "sell" the best ask; "vol_cur" is
        the volume in the base currency.
        """
        data = await self._public("ticker", pair)
        raw = LiquiTicker.model_validate(self._pair_entry(data, pair))
        return Ticker(
            exchange=self.exchange,
            symbol=pair,
            timestamp=to_utc_datetime(raw.updated),
            last=raw.last,
            high=raw.high,
            low=raw.low,
            bid=raw.buy,
            ask=raw.sell,
            volume=raw.vol_cur,
        )

    async def get_depth(self, pair: str) -> Orderbook:
        """Fetch the order book for one pair."""
        data = await self._public("depth", pair)
        entry = self._pair_entry(data, pair)
        return Orderbook(
            exchange=self.exchange,
            symbol=pair,
            timestamp=utc_now(),
            bids=[OrderbookEntry(price=p, amount=a) for p, a in entry.get("bids", [])],
            asks=[OrderbookEntry(price=p, amount=a) for p, a in entry.get("asks", [])],
        )

    async def get_trades(self, pair: str) -> List[Trade]:
        """
        Fetch recent trades for one pair.

        Liqui marks buys as "bid" and sells as "ask".
        """
        data = await self._public("trades", pair)
        trades = []
        for item in self._pair_entry(data, pair):
            trades.append(Trade(
                exchange=self.exchange,
                symbol=pair,
                timestamp=to_utc_datetime(item["timestamp"]),
                trade_id=str(item["tid"]),
                side="buy" if item.get("type") == "bid" else "sell",
                price=float(item["price"]),
                amount=float(item["amount"]),
            ))
        return trades

    def _pair_entry(self, data: Any, pair: str) -> Any:
        key = pair.lower()
        if not isinstance(data, dict) or key not in data:
            raise ExchangeAPIError(self.exchange, f"No data for pair '{pair}' in response")
        return data[key]

    # ============================================
    # Trade API
    # ============================================

    async def _private(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Sign and send a trade API call.

        Raises:
            AuthenticationRequiredError: If no signer is available
            SigningError: If the request cannot be signed (nothing is sent)
            ExchangeAPIError: If Liqui reports failure
        """
        if self._signer_source is None:
            raise ExchangeAPIError(self.exchange, "no signer configured for trade API calls")
        signer = self._signer_source()

        body: Dict[str, Any] = {"method": method}
        body.update(params or {})
        signed = signer.sign("POST", self._url(self.TRADE_PATH), body)

        data = await self._send(signed)
        if not isinstance(data, dict):
            raise ExchangeAPIError(self.exchange, f"{method}: unexpected response {data!r}")
        if data.get("success") != 1:
            raise ExchangeAPIError(self.exchange, f"{method}: {data.get('error', 'unknown error')}",
                                   details={"method": method})
        return data.get("return")

    async def get_account_info(self) -> LiquiAccountInfo:
        data = await self._private("getInfo")
        return LiquiAccountInfo.model_validate(data)

    async def trade(self, pair: str, order_type: str, amount: float, price: float) -> LiquiTradeResult:
        """
        Place a limit order.

        Args:
            pair: e.g. "eth_btc"
            order_type: "buy" or "sell"
            amount: Quantity in base currency
            price: Limit price in quote currency
        """
        params = {
            "pair": pair.lower(),
            "type": order_type.lower(),
            "amount": f"{amount:.8f}",
            "rate": f"{price:.8f}",
        }
        data = await self._private("Trade", params)
        return LiquiTradeResult.model_validate(data)

    async def get_active_orders(self, pair: str = "") -> Dict[str, LiquiOrder]:
        params = {"pair": pair.lower()} if pair else {}
        data = await self._private("ActiveOrders", params) or {}
        return {order_id: LiquiOrder.model_validate(order) for order_id, order in data.items()}

    async def get_order_info(self, order_id: int) -> Dict[str, LiquiOrder]:
        data = await self._private("OrderInfo", {"order_id": order_id}) or {}
        return {oid: LiquiOrder.model_validate(order) for oid, order in data.items()}

    async def cancel_order(self, order_id: int) -> LiquiCancelResult:
        data = await self._private("CancelOrder", {"order_id": order_id})
        return LiquiCancelResult.model_validate(data)

    async def get_trade_history(self, params: Optional[Dict[str, Any]] = None,
                                pair: str = "") -> Dict[str, LiquiTradeHistoryEntry]:
        """
        Fetch the account's trade history.

        Args:
            params: Liqui filters (from, count, from_id, end_id, order, since, end)
            pair: Optional pair filter
        """
        query = dict(params or {})
        if pair:
            query["pair"] = pair.lower()
        data = await self._private("TradeHistory", query) or {}
        return {tid: LiquiTradeHistoryEntry.model_validate(entry) for tid, entry in data.items()}

    async def withdraw_coin(self, coin: str, amount: float, address: str) -> LiquiWithdrawResult:
        params = {
            "coinName": coin.upper(),
            "amount": f"{amount:.8f}",
            "address": address,
        }
        data = await self._private("WithdrawCoin", params)
        return LiquiWithdrawResult.model_validate(data)
