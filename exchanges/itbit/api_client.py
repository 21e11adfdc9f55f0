"""
ItBit REST API Client

Async client for the ItBit v1 REST API.

Public market endpoints are plain GETs under /markets/<symbol>/. Wallet and
order endpoints are authenticated: every request carries

    Authorization:    <client key>:<base64 signature>
    X-Auth-Timestamp: <seconds since epoch>
    X-Auth-Nonce:     <strictly increasing nonce>

where the signature covers the JSON message
[method, url, body, nonce, timestamp] (see core.signing.ITBIT_SCHEME).
Query strings are part of the signed URL, so they are encoded before
signing and never re-encoded by the transport.

API Documentation:
    https://api.itbit.com/docs

Usage:
    async with ItBitAPIClient(signer_source=exchange.require_signer) as client:
        ticker = await client.get_ticker("XBTUSD")
        wallets = await client.get_wallets("user-id")
"""

from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, urlencode

from core.errors import ExchangeAPIError
from core.rest_client import BaseRESTClient
from core.schemas import Orderbook, OrderbookEntry, Ticker, Trade
from core.signing import RequestSigner
from core.utils.time import parse_utc_datetime, utc_now
from exchanges.itbit.models import (
    ItBitBalance,
    ItBitDepositAddress,
    ItBitOrder,
    ItBitTicker,
    ItBitWallet,
    ItBitWalletTrades,
    ItBitWalletTransfer,
    ItBitWithdrawal,
)


ITBIT_API_VERSION = "1"


class ItBitAPIClient(BaseRESTClient):
    """
    Async HTTP client for the ItBit API.

    Args:
        signer_source: Returns the RequestSigner for wallet endpoints
        timeout: Request timeout in seconds
        verbose: Log request bodies and raw responses
    """

    exchange = "itbit"
    BASE_URL = f"https://api.itbit.com/v{ITBIT_API_VERSION}"

    def __init__(self, signer_source: Optional[Callable[[], RequestSigner]] = None,
                 timeout: float = 10, verbose: bool = False):
        super().__init__(timeout=timeout, verbose=verbose)
        self._signer_source = signer_source

    # ============================================
    # Public Market Data
    # ============================================

    async def get_ticker(self, symbol: str) -> Ticker:
        data = await self._get(f"/markets/{symbol.upper()}/ticker")
        raw = ItBitTicker.model_validate(data)
        return Ticker(
            exchange=self.exchange,
            symbol=raw.pair or symbol,
            timestamp=raw.server_time_utc or utc_now(),
            last=raw.last_price,
            high=raw.high24h,
            low=raw.low24h,
            bid=raw.bid,
            ask=raw.ask,
            volume=raw.volume24h,
        )

    async def get_orderbook(self, symbol: str) -> Orderbook:
        data = await self._get(f"/markets/{symbol.upper()}/order_book")
        return Orderbook(
            exchange=self.exchange,
            symbol=symbol,
            timestamp=utc_now(),
            bids=[OrderbookEntry(price=float(p), amount=float(a)) for p, a in data.get("bids", [])],
            asks=[OrderbookEntry(price=float(p), amount=float(a)) for p, a in data.get("asks", [])],
        )

    async def get_trades(self, symbol: str, since: Optional[str] = None) -> List[Trade]:
        """
        Fetch recent trades.

        Args:
            symbol: Market, e.g. "XBTUSD"
            since: Only return trades after this match number
        """
        params = {"since": since} if since else None
        data = await self._get(f"/markets/{symbol.upper()}/trades", params)
        return [
            Trade(
                exchange=self.exchange,
                symbol=symbol,
                timestamp=parse_utc_datetime(item["timestamp"]),
                trade_id=str(item.get("matchNumber", "")),
                price=float(item["price"]),
                amount=float(item["amount"]),
            )
            for item in data.get("recentTrades", [])
        ]

    # ============================================
    # Authenticated Requests
    # ============================================

    async def _authenticated(self, method: str, path: str,
                             params: Optional[Dict[str, Any]] = None,
                             query: Optional[Dict[str, Any]] = None) -> Any:
        """
        Sign and send an authenticated request.

        Args:
            method: HTTP method
            path: Path below the API root
            params: JSON body parameters (POST)
            query: Query-string parameters (GET), part of the signed URL

        Raises:
            AuthenticationRequiredError: If no credentials are available
            SigningError: If signing fails (the request is not sent)
            ExchangeAPIError: On a non-2xx response
        """
        if self._signer_source is None:
            raise ExchangeAPIError(self.exchange, "no signer configured for authenticated calls")
        signer = self._signer_source()

        url = self._url(path)
        if query:
            url += "?" + urlencode(query)

        signed = signer.sign(method, url, params)
        return await self._send(signed)

    def _user_id(self) -> str:
        signer = self._signer_source() if self._signer_source else None
        user_id = signer.credentials.client_id if signer else ""
        if not user_id:
            raise ExchangeAPIError(self.exchange, "client_id (userId) is required for wallet endpoints")
        return user_id

    # ============================================
    # Wallets
    # ============================================

    async def get_wallets(self, params: Optional[Dict[str, Any]] = None) -> List[ItBitWallet]:
        """
        List the user's wallets.

        Args:
            params: Optional paging filters (page, perPage)
        """
        query = {"userId": self._user_id()}
        query.update(params or {})
        data = await self._authenticated("GET", "/wallets", query=query) or []
        return [ItBitWallet.model_validate(w) for w in data]

    async def create_wallet(self, name: str) -> ItBitWallet:
        data = await self._authenticated("POST", "/wallets", {"userId": self._user_id(), "name": name})
        return ItBitWallet.model_validate(data)

    async def get_wallet(self, wallet_id: str) -> ItBitWallet:
        data = await self._authenticated("GET", f"/wallets/{quote(wallet_id)}")
        return ItBitWallet.model_validate(data)

    async def get_wallet_balance(self, wallet_id: str, currency: str) -> ItBitBalance:
        data = await self._authenticated("GET", f"/wallets/{quote(wallet_id)}/balances/{currency.upper()}")
        return ItBitBalance.model_validate(data)

    async def get_wallet_trades(self, wallet_id: str,
                                params: Optional[Dict[str, Any]] = None) -> ItBitWalletTrades:
        data = await self._authenticated("GET", f"/wallets/{quote(wallet_id)}/trades", query=params)
        return ItBitWalletTrades.model_validate(data)

    # ============================================
    # Orders
    # ============================================

    async def get_wallet_orders(self, wallet_id: str,
                                params: Optional[Dict[str, Any]] = None) -> List[ItBitOrder]:
        data = await self._authenticated("GET", f"/wallets/{quote(wallet_id)}/orders", query=params) or []
        return [ItBitOrder.model_validate(o) for o in data]

    async def place_wallet_order(self, wallet_id: str, side: str, order_type: str, currency: str,
                                 amount: float, price: float, instrument: str,
                                 client_ref: str = "") -> ItBitOrder:
        """
        Place an order.

        Amounts are sent with 8 decimals and prices with 2, as strings.
        """
        params = {
            "side": side.lower(),
            "type": order_type.lower(),
            "currency": currency.upper(),
            "amount": f"{amount:.8f}",
            "price": f"{price:.2f}",
            "instrument": instrument.upper(),
        }
        if client_ref:
            params["clientOrderIdentifier"] = client_ref

        data = await self._authenticated("POST", f"/wallets/{quote(wallet_id)}/orders", params)
        return ItBitOrder.model_validate(data)

    async def get_wallet_order(self, wallet_id: str, order_id: str) -> ItBitOrder:
        data = await self._authenticated("GET", f"/wallets/{quote(wallet_id)}/orders/{quote(order_id)}")
        return ItBitOrder.model_validate(data)

    async def cancel_wallet_order(self, wallet_id: str, order_id: str) -> None:
        await self._authenticated("DELETE", f"/wallets/{quote(wallet_id)}/orders/{quote(order_id)}")

    # ============================================
    # Transfers
    # ============================================

    async def place_withdrawal_request(self, wallet_id: str, currency: str, address: str,
                                       amount: float) -> ItBitWithdrawal:
        params = {
            "currency": currency.upper(),
            "amount": f"{amount:.8f}",
            "address": address,
        }
        data = await self._authenticated("POST", f"/wallets/{quote(wallet_id)}/cryptocurrency_withdrawals", params)
        return ItBitWithdrawal.model_validate(data)

    async def get_deposit_address(self, wallet_id: str, currency: str) -> ItBitDepositAddress:
        data = await self._authenticated(
            "POST", f"/wallets/{quote(wallet_id)}/cryptocurrency_deposits", {"currency": currency.upper()}
        )
        return ItBitDepositAddress.model_validate(data)

    async def wallet_transfer(self, source_wallet: str, destination_wallet: str, amount: float,
                              currency: str) -> ItBitWalletTransfer:
        params = {
            "sourceWalletId": source_wallet,
            "destinationWalletId": destination_wallet,
            "amount": f"{amount:.8f}",
            "currencyCode": currency.upper(),
        }
        data = await self._authenticated("POST", "/wallet_transfers", params)
        return ItBitWalletTransfer.model_validate(data)
