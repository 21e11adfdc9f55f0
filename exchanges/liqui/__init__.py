"""
Liqui Exchange Handler

Implements ExchangeInterface for Liqui (spot, BTC-e style API).

Endpoints Used:
    Public (GET https://api.liqui.io/api/3/...):
        - info              Pair list and trading limits
        - ticker/<pair>     24h ticker
        - depth/<pair>      Order book
        - trades/<pair>     Recent trades

    Trade API (POST https://api.liqui.io/tapi, signed):
        - getInfo, Trade, ActiveOrders, OrderInfo, CancelOrder,
          TradeHistory, WithdrawCoin

Fees:
    Maker 0.10%, taker 0.25% of notional. Crypto withdrawals have a fixed
    per-coin fee; deposits are free.

Structure:
    exchanges/liqui/
    ├── __init__.py     # This file (LiquiExchange)
    ├── api_client.py   # REST client (public + trade API)
    └── models.py       # Response models
"""

from typing import Dict, List, Optional

from core.config import ExchangeConfig
from core.exchange_interface import ExchangeInterface
from core.schemas import FeeSchedule, Orderbook, Ticker, Trade
from core.signing import LIQUI_SCHEME
from .api_client import LiquiAPIClient
from .models import (
    LiquiAccountInfo,
    LiquiCancelResult,
    LiquiInfo,
    LiquiOrder,
    LiquiTradeHistoryEntry,
    LiquiTradeResult,
    LiquiWithdrawResult,
)


LIQUI_WITHDRAWAL_FEES = {
    "BTC": 0.001,
    "LTC": 0.01,
    "ETH": 0.005,
    "DASH": 0.002,
    "WAVES": 0.001,
    "GNT": 2.0,
    "ICN": 1.0,
    "REP": 0.1,
    "USDT": 15.0,
}


class LiquiExchange(ExchangeInterface):
    """
    Liqui Exchange Handler

    Example:
        >>> exchange = LiquiExchange(settings.exchange_config("liqui"))
        >>> await exchange.initialize()
        >>> ticker = await exchange.get_ticker("eth_btc")
        >>> await exchange.shutdown()
    """

    name = "liqui"

    capabilities = {
        "ticker": True,
        "orderbook": True,
        "trades": True,
        "authenticated": True,
        "withdrawals": True,
    }

    signing_scheme = LIQUI_SCHEME

    default_fee_schedule = FeeSchedule(
        maker_rate=0.001,
        taker_rate=0.0025,
        withdrawal_fees=LIQUI_WITHDRAWAL_FEES,
    )

    def __init__(self, config: Optional[ExchangeConfig] = None, timeout: float = 10):
        self.timeout = timeout
        self.client: Optional[LiquiAPIClient] = None
        self.info: Optional[LiquiInfo] = None
        super().__init__(config)

    # ============================================
    # Lifecycle
    # ============================================

    async def initialize(self) -> None:
        self.logger.info("Initializing Liqui exchange handler...")
        self.client = LiquiAPIClient(
            signer_source=self.require_signer,
            timeout=self.timeout,
            verbose=self.verbose,
        )
        await self.client.__aenter__()
        self.logger.info("✓ Liqui exchange handler initialized")

    async def shutdown(self) -> None:
        self.logger.info("Shutting down Liqui exchange handler...")
        if self.client:
            await self.client.__aexit__(None, None, None)
            self.client = None
        self.logger.info("✓ Liqui exchange handler shut down")

    async def health_check(self) -> bool:
        try:
            await self._client().get_info()
            return True
        except Exception as e:
            self.logger.error(f"Liqui health check failed: {e}")
            return False

    def _client(self) -> LiquiAPIClient:
        if self.client is None:
            raise RuntimeError("Liqui handler not initialized. Call initialize() first.")
        return self.client

    # ============================================
    # Public Market Data
    # ============================================

    async def get_info(self) -> LiquiInfo:
        self.info = await self._client().get_info()
        return self.info

    async def get_available_pairs(self, non_hidden: bool = False) -> List[str]:
        """
        List tradable pairs.

        Args:
            non_hidden: Only return pairs that are not hidden on the site
        """
        info = await self.get_info()
        return [
            pair for pair, details in info.pairs.items()
            if not non_hidden or details.hidden == 0
        ]

    async def get_ticker(self, pair: str) -> Ticker:
        return await self._client().get_ticker(pair)

    async def get_orderbook(self, pair: str) -> Orderbook:
        return await self._client().get_depth(pair)

    async def get_trades(self, pair: str) -> List[Trade]:
        return await self._client().get_trades(pair)

    # ============================================
    # Trade API
    # ============================================

    async def get_account_info(self) -> LiquiAccountInfo:
        return await self._client().get_account_info()

    async def trade(self, pair: str, order_type: str, amount: float, price: float) -> LiquiTradeResult:
        return await self._client().trade(pair, order_type, amount, price)

    async def submit_order(self, pair: str, side: str, order_type: str, amount: float,
                           price: float, client_id: str = "") -> LiquiTradeResult:
        """
        Place an order through the common order-submission entry point.

        Liqui only supports limit orders; client order ids are not supported
        and are only logged.

        Raises:
            ValueError: If order_type is not "limit" or side is not buy/sell
        """
        if order_type.lower() != "limit":
            raise ValueError(f"Liqui only supports limit orders, got '{order_type}'")
        if side.lower() not in ("buy", "sell"):
            raise ValueError(f"Invalid order side '{side}'")
        if client_id:
            self.logger.debug(f"Liqui ignores client order id '{client_id}'")
        return await self.trade(pair, side, amount, price)

    async def get_active_orders(self, pair: str = "") -> Dict[str, LiquiOrder]:
        return await self._client().get_active_orders(pair)

    async def get_order_info(self, order_id: int) -> Dict[str, LiquiOrder]:
        return await self._client().get_order_info(order_id)

    async def cancel_existing_order(self, order_id: int) -> LiquiCancelResult:
        return await self._client().cancel_order(order_id)

    async def get_trade_history(self, params: Optional[Dict] = None,
                                pair: str = "") -> Dict[str, LiquiTradeHistoryEntry]:
        return await self._client().get_trade_history(params, pair)

    async def withdraw_coins(self, coin: str, amount: float, address: str) -> LiquiWithdrawResult:
        return await self._client().withdraw_coin(coin, amount, address)
