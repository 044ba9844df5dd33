"""
Valuation rules for stocks and mutual funds.

Each holding type has an entry in ``VALUATION_RULES`` describing how to
compute book value, transaction payment, unrealized gain and the fee deducted
on a sale. All functions are pure: they read fees from a FeeSchedule and
never mutate the holding they are given.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

from eportfolio.models import FeeSchedule, Holding, HoldingType


CENT = Decimal("0.01")


class ValuationError(Exception):
    """Raised when no valuation rule exists for a holding type."""
    pass


def round_money(amount: Decimal) -> Decimal:
    """Round a monetary amount to 2 decimal places, half-up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ValuationRule:
    """
    Pricing rules for one holding type.

    Attributes:
        book_value: (quantity, price, fees) -> cost basis added by a purchase
        payment: (quantity, price, fees) -> cost or proceeds of a transaction
        gain: (holding, new_price, fees) -> unrealized gain at new_price, 2dp
        sale_fee: (fees) -> fee deducted from proceeds when units are sold
    """
    book_value: Callable[[int, Decimal, FeeSchedule], Decimal]
    payment: Callable[[int, Decimal, FeeSchedule], Decimal]
    gain: Callable[[Holding, Decimal, FeeSchedule], Decimal]
    sale_fee: Callable[[FeeSchedule], Decimal]


def _stock_book_value(quantity: int, price: Decimal, fees: FeeSchedule) -> Decimal:
    return quantity * price + fees.commission


def _stock_payment(quantity: int, price: Decimal, fees: FeeSchedule) -> Decimal:
    return quantity * price + fees.commission


def _stock_gain(holding: Holding, new_price: Decimal, fees: FeeSchedule) -> Decimal:
    # Commission comes off after rounding the base gain
    return round_money(holding.quantity * new_price - holding.book_value) - fees.commission


def _fund_book_value(quantity: int, price: Decimal, fees: FeeSchedule) -> Decimal:
    return quantity * price


def _fund_payment(quantity: int, price: Decimal, fees: FeeSchedule) -> Decimal:
    return quantity * price - fees.redemption_fee


def _fund_gain(holding: Holding, new_price: Decimal, fees: FeeSchedule) -> Decimal:
    return round_money(
        holding.quantity * new_price - fees.redemption_fee - holding.book_value
    )


def _commission(fees: FeeSchedule) -> Decimal:
    return fees.commission


VALUATION_RULES: dict[HoldingType, ValuationRule] = {
    HoldingType.STOCK: ValuationRule(
        book_value=_stock_book_value,
        payment=_stock_payment,
        gain=_stock_gain,
        sale_fee=_commission,
    ),
    HoldingType.MUTUAL_FUND: ValuationRule(
        book_value=_fund_book_value,
        payment=_fund_payment,
        gain=_fund_gain,
        sale_fee=_commission,
    ),
}


def get_rule(holding_type: HoldingType) -> ValuationRule:
    """
    Look up the valuation rule for a holding type.

    Raises:
        ValuationError: If the type has no registered rule
    """
    try:
        return VALUATION_RULES[holding_type]
    except KeyError:
        raise ValuationError(f"No valuation rule for holding type: {holding_type}")


def calculate_book_value(
    holding_type: HoldingType,
    quantity: int,
    price: Decimal,
    fees: FeeSchedule,
) -> Decimal:
    """
    Calculate the cost basis added by buying ``quantity`` units at ``price``.

    Stocks include the commission; funds are bought without a fee.
    """
    return get_rule(holding_type).book_value(quantity, price, fees)


def calculate_payment(
    holding_type: HoldingType,
    quantity: int,
    price: Decimal,
    fees: FeeSchedule,
) -> Decimal:
    """
    Calculate the payment for a transaction of ``quantity`` units at ``price``.

    Stocks add the commission; funds deduct the redemption fee.
    """
    return get_rule(holding_type).payment(quantity, price, fees)


def calculate_gain(
    holding: Holding,
    new_price: Decimal,
    fees: FeeSchedule,
) -> Decimal:
    """
    Calculate the unrealized gain of a holding if valued at ``new_price``.

    Args:
        holding: Holding to evaluate (not modified)
        new_price: Per-unit price to value at
        fees: Fee schedule in effect

    Returns:
        Gain rounded to 2 decimal places
    """
    return get_rule(holding.holding_type).gain(holding, new_price, fees)


def calculate_sale_fee(holding_type: HoldingType, fees: FeeSchedule) -> Decimal:
    """Fee deducted from sale proceeds for this holding type."""
    return get_rule(holding_type).sale_fee(fees)
