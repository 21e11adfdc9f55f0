"""
Fee Schedule Engine

Estimates the fee of a transaction from an exchange's FeeSchedule.

Rules, in precedence order:
    1. Trade fee: maker or taker rate times notional (amount * price).
       A zero, negative or non-finite notional yields a zero fee.
    2. Crypto withdrawal: per-currency fixed amount or percentage of amount.
       Unknown currency yields zero ("no known fee").
    3. Crypto deposit, bank deposit, bank withdrawal: zero unless the schedule
       has an entry for the currency (and, for bank fees, the transfer type).

The result is never negative: maker rebates clamp to zero. Unknown fee
categories and non-finite results (NaN or infinite inputs) give zero.

compute_fee() only reads the schedule, so it is safe to call from any task
or thread without locking.
"""

import math
from typing import Dict, Optional

from core.schemas import BankTransactionType, FeeQuery, FeeRate, FeeSchedule, FeeType


def trade_fee(query: FeeQuery, schedule: FeeSchedule) -> float:
    notional = query.amount * query.purchase_price
    if not math.isfinite(notional) or notional <= 0:
        return 0.0
    rate = schedule.maker_rate if query.is_maker else schedule.taker_rate
    return rate * notional


def _currency_fee(table: Dict[str, FeeRate], currency: str, amount: float) -> float:
    rate = table.get(currency)
    if rate is None:
        return 0.0
    return rate.apply(amount)


def _bank_fee(table: Dict[str, Dict[BankTransactionType, FeeRate]], currency: str,
              transfer_type: Optional[BankTransactionType], amount: float) -> float:
    rails = table.get(currency)
    if not rails or transfer_type is None:
        return 0.0
    rate = rails.get(transfer_type)
    if rate is None:
        return 0.0
    return rate.apply(amount)


def compute_fee(query: FeeQuery, schedule: FeeSchedule) -> float:
    """
    Compute the fee for a transaction.

    Args:
        query: Transaction description
        schedule: Exchange fee table

    Returns:
        float: Fee in the currency the rate applies to (second_currency for
            trades, first_currency for crypto transfers, currency_item for
            bank transfers). Never negative.

    Example:
        >>> schedule = FeeSchedule(maker_rate=0.001, taker_rate=0.0025)
        >>> compute_fee(FeeQuery(amount=1000, purchase_price=1000), schedule)
        2500.0
    """
    if query.fee_type == FeeType.CRYPTOCURRENCY_TRADE_FEE:
        fee = trade_fee(query, schedule)
    elif query.fee_type == FeeType.CRYPTOCURRENCY_WITHDRAWAL_FEE:
        fee = _currency_fee(schedule.withdrawal_fees, query.first_currency, query.amount)
    elif query.fee_type == FeeType.CRYPTOCURRENCY_DEPOSIT_FEE:
        fee = _currency_fee(schedule.deposit_fees, query.first_currency, query.amount)
    elif query.fee_type == FeeType.INTERNATIONAL_BANK_WITHDRAWAL_FEE:
        fee = _bank_fee(schedule.bank_withdrawal_fees, query.currency_item,
                        query.bank_transaction_type, query.amount)
    elif query.fee_type == FeeType.INTERNATIONAL_BANK_DEPOSIT_FEE:
        fee = _bank_fee(schedule.bank_deposit_fees, query.currency_item,
                        query.bank_transaction_type, query.amount)
    else:
        fee = 0.0

    if not math.isfinite(fee):
        return 0.0
    return max(fee, 0.0)
