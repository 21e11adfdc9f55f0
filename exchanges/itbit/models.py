"""
ItBit Response Models

ItBit returns camelCase JSON with numbers encoded as strings; the models
below accept both and expose snake_case attributes.
"""

from datetime import datetime
from typing import Annotated, List, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.utils.time import parse_utc_datetime


def _parse_time(value):
    # ItBit sends 7 fractional digits ("2014-06-24T20:42:35.6160000Z")
    if isinstance(value, str):
        return parse_utc_datetime(value) if value else None
    return value


ItBitTime = Annotated[Optional[datetime], BeforeValidator(_parse_time)]


class ItBitModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ItBitTicker(ItBitModel):
    pair: str
    bid: float = 0.0
    bid_amt: float = 0.0
    ask: float = 0.0
    ask_amt: float = 0.0
    last_price: float = 0.0
    last_amt: float = 0.0
    volume24h: float = 0.0
    volume_today: float = 0.0
    high24h: float = 0.0
    low24h: float = 0.0
    high_today: float = 0.0
    low_today: float = 0.0
    open_today: float = 0.0
    vwap_today: float = 0.0
    vwap24h: float = 0.0
    server_time_utc: ItBitTime = Field(default=None, alias="serverTimeUTC")


class ItBitBalance(ItBitModel):
    currency: str
    available_balance: float = 0.0
    total_balance: float = 0.0


class ItBitWallet(ItBitModel):
    id: str
    user_id: str = ""
    name: str = ""
    balances: List[ItBitBalance] = Field(default_factory=list)


class ItBitOrder(ItBitModel):
    id: str
    wallet_id: str = ""
    side: str
    instrument: str
    type: str
    currency: str = ""
    amount: float = 0.0
    price: float = 0.0
    amount_filled: float = 0.0
    volume_weighted_average_price: float = 0.0
    created_time: ItBitTime = None
    status: str = ""
    client_order_identifier: Optional[str] = None


class ItBitWalletTrade(ItBitModel):
    order_id: str = ""
    timestamp: ItBitTime = None
    instrument: str = ""
    direction: str = ""
    currency1: str = ""
    currency1_amount: float = 0.0
    currency2: str = ""
    currency2_amount: float = 0.0
    rate: float = 0.0
    commission_paid: float = 0.0
    commission_currency: str = ""
    rebates_applied: float = 0.0
    rebate_currency: str = ""


class ItBitWalletTrades(ItBitModel):
    total_number_of_records: int = 0
    current_page_number: int = 0
    latest_execution_id: Optional[str] = None
    records_per_page: int = 0
    trading_history: List[ItBitWalletTrade] = Field(default_factory=list)


class ItBitWithdrawal(ItBitModel):
    withdrawal_id: int = 0
    internal_message: Optional[str] = None
    external_message: Optional[str] = None


class ItBitDepositAddress(ItBitModel):
    deposit_address: str = ""
    wallet_id: str = ""
    currency: str = ""
    metadata: Optional[dict] = None


class ItBitWalletTransfer(ItBitModel):
    source_wallet_id: str = ""
    destination_wallet_id: str = ""
    amount: float = 0.0
    currency_code: str = ""
