"""
Exchange Interface - Abstract Contract for All Exchange Handlers

Every exchange handler (Liqui, ItBit, ...) inherits from ExchangeInterface.
The base class owns what is common to all handlers:

    - Configuration: name, enabled flag, verbosity, polling delay
    - Credentials and the per-credential RequestSigner / NonceCounter
    - The fee schedule and fee estimation (core.fees.compute_fee)

Subclasses declare their SigningScheme and default FeeSchedule and implement
the market-data methods.

Example:
    class LiquiExchange(ExchangeInterface):
        name = "liqui"
        signing_scheme = LIQUI_SCHEME
        default_fee_schedule = FeeSchedule(maker_rate=0.001, taker_rate=0.0025)

        async def get_ticker(self, pair):
            ...

    exchange = manager.get_exchange("liqui")
    ticker = await exchange.get_ticker("eth_btc")
    fee = exchange.get_fee(FeeQuery(amount=1, purchase_price=0.05))

Capabilities System:
    Each exchange declares which features it supports via `capabilities`,
    so callers can degrade gracefully:

        capabilities = {
            "ticker": True,
            "orderbook": True,
            "trades": True,
            "authenticated": True,
            "withdrawals": False,
        }
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from core.config import ExchangeConfig
from core.errors import AuthenticationRequiredError
from core.fees import compute_fee
from core.logging import get_logger
from core.schemas import Credentials, FeeQuery, FeeSchedule, Orderbook, Ticker, Trade
from core.signing import RequestSigner, SigningScheme


class ExchangeInterface(ABC):
    """
    Abstract Base Class for Exchange Handlers

    Class Attributes:
        name: Unique identifier (lowercase, e.g., "liqui", "itbit")
        capabilities: Features this exchange supports
        signing_scheme: How authenticated requests are signed
        default_fee_schedule: Fee table installed by set_defaults()
        default_polling_delay: Seconds between ticker polls by default

    Abstract Methods:
        - get_ticker: Current ticker for a pair
        - get_orderbook: Order book snapshot for a pair
        - get_trades: Recent public trades for a pair

    Optional Methods:
        - initialize / shutdown: HTTP session lifecycle
        - health_check: Verify the exchange API is reachable
    """

    # ============================================
    # Class Attributes (set by subclasses)
    # ============================================

    name: str

    capabilities: Dict[str, bool] = {
        "ticker": False,
        "orderbook": False,
        "trades": False,
        "authenticated": False,
        "withdrawals": False,
    }

    signing_scheme: SigningScheme

    default_fee_schedule: FeeSchedule = FeeSchedule()

    default_polling_delay: int = 10

    def __init__(self, config: Optional[ExchangeConfig] = None):
        self.logger = get_logger(f"exchanges.{self.name}")
        self.config: ExchangeConfig
        self.fee_schedule: FeeSchedule
        self.signer: Optional[RequestSigner] = None
        self.set_defaults()
        if config is not None:
            self.setup(config)

    # ============================================
    # Configuration
    # ============================================

    def set_defaults(self) -> None:
        """Reset configuration and fee schedule to this exchange's defaults."""
        self.config = ExchangeConfig(
            name=self.name,
            enabled=True,
            verbose=False,
            rest_polling_delay=self.default_polling_delay,
        )
        self.fee_schedule = self.default_fee_schedule
        self.signer = None

    def setup(self, config: ExchangeConfig, fee_schedule: Optional[FeeSchedule] = None) -> None:
        """
        Apply a loaded configuration.

        Args:
            config: Exchange configuration (see core.config.Settings.exchange_config)
            fee_schedule: Optional override for the default fee table
        """
        self.config = config.model_copy(update={"name": self.name})
        if fee_schedule is not None:
            self.fee_schedule = fee_schedule

        credentials = config.credentials
        if credentials is not None:
            self._install_credentials(credentials)
        else:
            self.signer = None

        self.logger.debug(
            f"{self.name} configured (enabled={config.enabled}, "
            f"authenticated={config.authenticated_api_support}, "
            f"polling_delay={config.rest_polling_delay}s)"
        )

    def get_name(self) -> str:
        return self.name

    def is_enabled(self) -> bool:
        return self.config.enabled

    def set_enabled(self, enabled: bool) -> None:
        self.config = self.config.model_copy(update={"enabled": enabled})

    @property
    def verbose(self) -> bool:
        return self.config.verbose

    def set_api_keys(self, api_key: str, api_secret: str, client_id: str = "") -> None:
        """
        Replace the credential set.

        A new credential set gets a new nonce counter; the old counter is
        dropped along with the old credentials.
        """
        self.config = self.config.model_copy(
            update={"api_key": api_key, "api_secret": api_secret, "client_id": client_id}
        )
        self._install_credentials(Credentials(api_key=api_key, api_secret=api_secret, client_id=client_id))

    def _install_credentials(self, credentials: Credentials) -> None:
        if self.signer is not None and self.signer.credentials == credentials:
            return
        self.signer = RequestSigner(self.signing_scheme, credentials)

    @property
    def credentials(self) -> Optional[Credentials]:
        return self.signer.credentials if self.signer else None

    def require_signer(self) -> RequestSigner:
        """
        Return the signer for authenticated calls.

        Raises:
            AuthenticationRequiredError: If authenticated support is disabled
                or no credentials are installed
        """
        if not self.config.authenticated_api_support or self.signer is None:
            raise AuthenticationRequiredError(self.name)
        return self.signer

    # ============================================
    # Fees
    # ============================================

    def get_fee(self, query: FeeQuery) -> float:
        """Estimate the fee for a transaction using this exchange's schedule."""
        return compute_fee(query, self.fee_schedule)

    def get_maker_taker_fee(self, is_maker: bool) -> float:
        """Return the raw trade fee rate for the given role."""
        return self.fee_schedule.maker_rate if is_maker else self.fee_schedule.taker_rate

    # ============================================
    # Market Data (REST)
    # ============================================

    @abstractmethod
    async def get_ticker(self, pair: str) -> Ticker:
        """
        Fetch the current ticker for a pair.

        Args:
            pair: Pair in the exchange's notation ("eth_btc" on Liqui, "XBTUSD" on ItBit)

        Raises:
            ExchangeAPIError: If the exchange rejects the request
        """
        ...

    @abstractmethod
    async def get_orderbook(self, pair: str) -> Orderbook:
        """Fetch an order book snapshot for a pair."""
        ...

    @abstractmethod
    async def get_trades(self, pair: str) -> List[Trade]:
        """Fetch recent public trades for a pair."""
        ...

    # ============================================
    # Optional Lifecycle Methods
    # ============================================

    async def initialize(self) -> None:
        """Open network resources. Default implementation does nothing."""
        pass

    async def shutdown(self) -> None:
        """Release network resources. Should not raise."""
        pass

    async def health_check(self) -> bool:
        """Return True if the exchange API looks reachable."""
        return True

    # ============================================
    # Helper Methods
    # ============================================

    def supports(self, feature: str) -> bool:
        return self.capabilities.get(feature, False)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}', enabled={self.config.enabled})>"
