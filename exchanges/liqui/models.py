"""
Liqui Response Models

Pydantic models for the payloads of Liqui's public (/api/3) and trade
(/tapi) APIs. Field names follow Liqui's JSON keys.
"""

from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class LiquiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LiquiPairInfo(LiquiModel):
    decimal_places: int = 8
    min_price: float = 0.0
    max_price: float = 0.0
    min_amount: float = 0.0
    max_amount: float = 0.0
    min_total: float = 0.0
    hidden: int = 0
    fee: float = 0.0


class LiquiInfo(LiquiModel):
    server_time: int = 0
    pairs: Dict[str, LiquiPairInfo] = Field(default_factory=dict)


class LiquiTicker(LiquiModel):
    high: float
    low: float
    avg: float = 0.0
    vol: float = 0.0
    vol_cur: float = 0.0
    last: float
    buy: float = 0.0
    sell: float = 0.0
    updated: int


class LiquiAccountInfo(LiquiModel):
    funds: Dict[str, float] = Field(default_factory=dict)
    rights: Dict[str, int] = Field(default_factory=dict)
    transaction_count: int = 0
    open_orders: int = 0
    server_time: int = 0


class LiquiTradeResult(LiquiModel):
    received: float = 0.0
    remains: float = 0.0
    order_id: int = 0
    funds: Dict[str, float] = Field(default_factory=dict)


class LiquiOrder(LiquiModel):
    pair: str
    type: str
    amount: float
    rate: float
    timestamp_created: int = 0
    status: int = 0
    start_amount: Optional[float] = None


class LiquiCancelResult(LiquiModel):
    order_id: int
    funds: Dict[str, float] = Field(default_factory=dict)


class LiquiTradeHistoryEntry(LiquiModel):
    pair: str
    type: str
    amount: float
    rate: float
    order_id: int = 0
    is_your_order: int = 0
    timestamp: int = 0


class LiquiWithdrawResult(LiquiModel):
    transaction_id: int = Field(default=0, alias="tId")
    amount_sent: float = Field(default=0.0, alias="amountSent")
    funds: Dict[str, float] = Field(default_factory=dict)
