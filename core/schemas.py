"""
Normalized Data Schemas

Pydantic models shared by the signing core, the fee engine and the exchange
handlers.

Models:
    - Credentials: API key pair plus optional client/user identifier
    - Ticker, Orderbook, OrderbookEntry, Trade: exchange-agnostic market data
    - FeeType, BankTransactionType: fee categories
    - FeeRate, FeeQuery, FeeSchedule: fee engine inputs

Regardless of which exchange data comes from, handlers normalize it into
these models so callers work with one structure.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================
# Credentials
# ============================================

class Credentials(BaseModel):
    """
    API credentials owned by exactly one exchange handler.

    Attributes:
        api_key: Public key identifier sent with every signed request
        api_secret: Shared secret used as the HMAC key (never logged)
        client_id: Optional user/client identifier (ItBit userId)

    Notes:
        - Immutable; replace through ExchangeInterface.set_api_keys()
        - repr() hides the secret
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    api_secret: str = Field(default="", repr=False)
    client_id: str = ""


# ============================================
# Market Data
# ============================================

class BaseMarketModel(BaseModel):
    """
    Base model for market data schemas.

    Common fields:
        exchange: Source exchange (lowercase)
        symbol: Pair as the exchange names it, uppercased (e.g., "ETH_BTC", "XBTUSD")
        timestamp: When the data was produced, UTC
    """

    exchange: str = Field(
        ...,
        description="Source exchange identifier (lowercase)",
        examples=["liqui", "itbit"]
    )

    symbol: str = Field(
        ...,
        description="Trading pair symbol in uppercase",
        examples=["ETH_BTC", "XBTUSD"]
    )

    timestamp: datetime = Field(
        ...,
        description="Event timestamp in UTC"
    )

    @field_validator('symbol')
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        """Ensure symbol is uppercase"""
        return v.upper()

    @field_validator('exchange')
    @classmethod
    def validate_exchange(cls, v: str) -> str:
        """Ensure exchange is lowercase"""
        return v.lower()


class Ticker(BaseMarketModel):
    """
    Snapshot of a market's 24h ticker.

    Example:
        >>> Ticker(exchange="itbit", symbol="XBTUSD", timestamp=now,
        ...        last=27000.0, high=27500.0, low=26500.0,
        ...        bid=26990.0, ask=27010.0, volume=312.5)
    """

    last: float = Field(..., ge=0, description="Last traded price")
    high: float = Field(..., ge=0, description="24h high")
    low: float = Field(..., ge=0, description="24h low")
    bid: float = Field(default=0.0, ge=0, description="Best bid")
    ask: float = Field(default=0.0, ge=0, description="Best ask")
    volume: float = Field(..., ge=0, description="24h volume in base currency")


class OrderbookEntry(BaseModel):
    """A single price level."""

    price: float = Field(..., ge=0)
    amount: float = Field(..., ge=0)


class Orderbook(BaseMarketModel):
    """Order book snapshot; bids best-first (descending), asks best-first (ascending)."""

    bids: List[OrderbookEntry] = Field(default_factory=list)
    asks: List[OrderbookEntry] = Field(default_factory=list)


class Trade(BaseMarketModel):
    """A public trade print."""

    trade_id: str = Field(..., description="Exchange trade identifier")
    side: Optional[Literal["buy", "sell"]] = Field(
        default=None,
        description="Taker side, when the exchange reports it"
    )
    price: float = Field(..., ge=0)
    amount: float = Field(..., ge=0)


# ============================================
# Fee Schemas
# ============================================

class FeeType(str, Enum):
    """Fee categories understood by the fee engine."""

    CRYPTOCURRENCY_TRADE_FEE = "crypto_trade"
    CRYPTOCURRENCY_WITHDRAWAL_FEE = "crypto_withdrawal"
    CRYPTOCURRENCY_DEPOSIT_FEE = "crypto_deposit"
    INTERNATIONAL_BANK_DEPOSIT_FEE = "bank_deposit"
    INTERNATIONAL_BANK_WITHDRAWAL_FEE = "bank_withdrawal"


class BankTransactionType(str, Enum):
    """Fiat transfer rails, used to key bank fee tables."""

    WIRE_TRANSFER = "wire"
    SWIFT = "swift"
    SEPA = "sepa"
    PERFECT_MONEY = "perfect_money"
    NEFT = "neft"
    PAYPAL = "paypal"


class FeeRate(BaseModel):
    """
    A fee table entry: a fixed amount, or a fraction of the transacted amount.

    Example:
        >>> FeeRate(value=0.01).apply(5)                     # fixed
        0.01
        >>> FeeRate(value=0.002, percentage=True).apply(5)   # 0.2% of amount
        0.01
    """

    model_config = ConfigDict(frozen=True)

    value: float
    percentage: bool = False

    def apply(self, amount: float) -> float:
        if self.percentage:
            return self.value * amount
        return self.value


def _coerce_rate(v):
    # Plain numbers in config files mean fixed amounts
    if isinstance(v, (int, float)):
        return FeeRate(value=float(v))
    return v


class FeeQuery(BaseModel):
    """
    Description of a transaction whose fee should be estimated.

    Attributes:
        fee_type: Fee category
        amount: Quantity in first_currency
        purchase_price: Price in second_currency per unit
        first_currency: Base currency (e.g., "LTC")
        second_currency: Quote currency (e.g., "BTC")
        is_maker: True if the order adds liquidity
        currency_item: Fiat currency for bank fees (e.g., "USD")
        bank_transaction_type: Fiat rail for bank fees
    """

    fee_type: Union[FeeType, str] = FeeType.CRYPTOCURRENCY_TRADE_FEE
    amount: float = 0.0
    purchase_price: float = 0.0
    first_currency: str = ""
    second_currency: str = ""
    is_maker: bool = False
    currency_item: str = ""
    bank_transaction_type: Optional[Union[BankTransactionType, str]] = None

    @field_validator('fee_type', mode='before')
    @classmethod
    def keep_unknown_fee_type(cls, v):
        """Unrecognized categories pass through; the engine prices them at zero"""
        try:
            return FeeType(v)
        except ValueError:
            return v

    @field_validator('bank_transaction_type', mode='before')
    @classmethod
    def keep_unknown_rail(cls, v):
        if v is None:
            return v
        try:
            return BankTransactionType(v)
        except ValueError:
            return v

    @field_validator('first_currency', 'second_currency', 'currency_item')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Currency codes are compared uppercase"""
        return v.strip().upper()


class FeeSchedule(BaseModel):
    """
    Read-only fee table owned by an exchange's configuration.

    Attributes:
        maker_rate: Trade fee rate for maker orders (may be negative, a rebate)
        taker_rate: Trade fee rate for taker orders
        withdrawal_fees: Crypto withdrawal fee per currency
        deposit_fees: Crypto deposit fee per currency
        bank_withdrawal_fees: Fiat currency -> transfer type -> fee
        bank_deposit_fees: Fiat currency -> transfer type -> fee

    Notes:
        Currency keys are uppercased on load. Frozen after construction, so
        a schedule can be shared between tasks without locking.
    """

    model_config = ConfigDict(frozen=True)

    maker_rate: float = 0.0
    taker_rate: float = 0.0
    withdrawal_fees: Dict[str, FeeRate] = Field(default_factory=dict)
    deposit_fees: Dict[str, FeeRate] = Field(default_factory=dict)
    bank_withdrawal_fees: Dict[str, Dict[BankTransactionType, FeeRate]] = Field(default_factory=dict)
    bank_deposit_fees: Dict[str, Dict[BankTransactionType, FeeRate]] = Field(default_factory=dict)

    @field_validator('withdrawal_fees', 'deposit_fees', mode='before')
    @classmethod
    def normalize_currency_table(cls, v):
        return {str(k).upper(): _coerce_rate(rate) for k, rate in (v or {}).items()}

    @field_validator('bank_withdrawal_fees', 'bank_deposit_fees', mode='before')
    @classmethod
    def normalize_bank_table(cls, v):
        return {
            str(currency).upper(): {kind: _coerce_rate(rate) for kind, rate in rails.items()}
            for currency, rails in (v or {}).items()
        }
