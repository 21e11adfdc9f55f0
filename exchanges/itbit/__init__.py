"""
ItBit Exchange Handler

Implements ExchangeInterface for ItBit.

Endpoints Used:
    Public (GET https://api.itbit.com/v1/markets/<symbol>/...):
        - ticker, order_book, trades

    Authenticated (signed, see core.signing.ITBIT_SCHEME):
        - /wallets (list, create, get, balances, trades)
        - /wallets/<id>/orders (list, place, get, cancel)
        - /wallets/<id>/cryptocurrency_withdrawals
        - /wallets/<id>/cryptocurrency_deposits
        - /wallet_transfers

Fees:
    Taker 0.50%, maker -0.10% (a rebate, estimated as zero). Bank
    withdrawals: USD wire/SWIFT 40 USD, EUR wire/SEPA 1 EUR.
"""

from typing import Dict, List, Optional

from core.config import ExchangeConfig
from core.exchange_interface import ExchangeInterface
from core.schemas import BankTransactionType, FeeSchedule, Orderbook, Ticker, Trade
from core.signing import ITBIT_SCHEME
from .api_client import ItBitAPIClient
from .models import (
    ItBitBalance,
    ItBitDepositAddress,
    ItBitOrder,
    ItBitWallet,
    ItBitWalletTrades,
    ItBitWalletTransfer,
    ItBitWithdrawal,
)


class ItBitExchange(ExchangeInterface):
    """
    ItBit Exchange Handler

    Wallet endpoints need the ItBit user id, configured as the credential
    client_id (ITBIT_CLIENT_ID).

    Example:
        >>> exchange = ItBitExchange(settings.exchange_config("itbit"))
        >>> await exchange.initialize()
        >>> ticker = await exchange.get_ticker("XBTUSD")
    """

    name = "itbit"

    capabilities = {
        "ticker": True,
        "orderbook": True,
        "trades": True,
        "authenticated": True,
        "withdrawals": True,
    }

    signing_scheme = ITBIT_SCHEME

    default_fee_schedule = FeeSchedule(
        maker_rate=-0.001,
        taker_rate=0.005,
        bank_withdrawal_fees={
            "USD": {BankTransactionType.WIRE_TRANSFER: 40, BankTransactionType.SWIFT: 40},
            "EUR": {BankTransactionType.WIRE_TRANSFER: 1, BankTransactionType.SEPA: 1},
        },
    )

    def __init__(self, config: Optional[ExchangeConfig] = None, timeout: float = 10):
        self.timeout = timeout
        self.client: Optional[ItBitAPIClient] = None
        super().__init__(config)

    # ============================================
    # Lifecycle
    # ============================================

    async def initialize(self) -> None:
        self.logger.info("Initializing ItBit exchange handler...")
        self.client = ItBitAPIClient(
            signer_source=self.require_signer,
            timeout=self.timeout,
            verbose=self.verbose,
        )
        await self.client.__aenter__()
        self.logger.info("✓ ItBit exchange handler initialized")

    async def shutdown(self) -> None:
        self.logger.info("Shutting down ItBit exchange handler...")
        if self.client:
            await self.client.__aexit__(None, None, None)
            self.client = None
        self.logger.info("✓ ItBit exchange handler shut down")

    async def health_check(self) -> bool:
        try:
            await self._client().get_ticker("XBTUSD")
            return True
        except Exception as e:
            self.logger.error(f"ItBit health check failed: {e}")
            return False

    def _client(self) -> ItBitAPIClient:
        if self.client is None:
            raise RuntimeError("ItBit handler not initialized. Call initialize() first.")
        return self.client

    # ============================================
    # Public Market Data
    # ============================================

    async def get_ticker(self, pair: str) -> Ticker:
        return await self._client().get_ticker(pair)

    async def get_orderbook(self, pair: str) -> Orderbook:
        return await self._client().get_orderbook(pair)

    async def get_trades(self, pair: str) -> List[Trade]:
        return await self._client().get_trades(pair)

    async def get_trade_history(self, pair: str, since: str) -> List[Trade]:
        """Trades after the given match number."""
        return await self._client().get_trades(pair, since=since)

    # ============================================
    # Wallets & Orders
    # ============================================

    async def get_wallets(self, params: Optional[Dict] = None) -> List[ItBitWallet]:
        return await self._client().get_wallets(params)

    async def create_wallet(self, wallet_name: str) -> ItBitWallet:
        return await self._client().create_wallet(wallet_name)

    async def get_wallet(self, wallet_id: str) -> ItBitWallet:
        return await self._client().get_wallet(wallet_id)

    async def get_wallet_balance(self, wallet_id: str, currency: str) -> ItBitBalance:
        return await self._client().get_wallet_balance(wallet_id, currency)

    async def get_wallet_trades(self, wallet_id: str, params: Optional[Dict] = None) -> ItBitWalletTrades:
        return await self._client().get_wallet_trades(wallet_id, params)

    async def get_wallet_orders(self, wallet_id: str, params: Optional[Dict] = None) -> List[ItBitOrder]:
        return await self._client().get_wallet_orders(wallet_id, params)

    async def place_wallet_order(self, wallet_id: str, side: str, order_type: str, currency: str,
                                 amount: float, price: float, instrument: str,
                                 client_ref: str = "") -> ItBitOrder:
        return await self._client().place_wallet_order(
            wallet_id, side, order_type, currency, amount, price, instrument, client_ref
        )

    async def get_wallet_order(self, wallet_id: str, order_id: str) -> ItBitOrder:
        return await self._client().get_wallet_order(wallet_id, order_id)

    async def cancel_wallet_order(self, wallet_id: str, order_id: str) -> None:
        await self._client().cancel_wallet_order(wallet_id, order_id)

    async def place_withdrawal_request(self, wallet_id: str, currency: str, address: str,
                                       amount: float) -> ItBitWithdrawal:
        return await self._client().place_withdrawal_request(wallet_id, currency, address, amount)

    async def get_deposit_address(self, wallet_id: str, currency: str) -> ItBitDepositAddress:
        return await self._client().get_deposit_address(wallet_id, currency)

    async def wallet_transfer(self, source_wallet: str, destination_wallet: str, amount: float,
                              currency: str) -> ItBitWalletTransfer:
        return await self._client().wallet_transfer(source_wallet, destination_wallet, amount, currency)
