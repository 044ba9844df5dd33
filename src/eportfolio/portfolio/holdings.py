"""
Holding-level transactions for the ePortfolio tracker.

Provides the buy/sell/price-update transitions of a single holding. Each
function validates its inputs before touching the holding, so a rejected
transaction leaves the holding exactly as it was.
"""

from decimal import Decimal

from eportfolio.models import FeeSchedule, Holding, HoldingType, SaleResult
from eportfolio.portfolio.valuation import (
    calculate_book_value,
    calculate_payment,
    calculate_sale_fee,
    round_money,
)


class PortfolioError(Exception):
    """Base class for errors reported by portfolio operations."""
    pass


class InvalidTransactionError(PortfolioError):
    """Raised when a quantity or price is out of range."""
    pass


class InsufficientQuantityError(PortfolioError):
    """Raised when a sale asks for more units than are held."""

    def __init__(self, symbol: str, requested: int, available: int):
        self.symbol = symbol
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient quantity of {symbol}: requested {requested}, "
            f"holding {available}"
        )


def validate_quantity(quantity: int) -> None:
    """
    Check that a transaction quantity is a positive whole number.

    Raises:
        InvalidTransactionError: If quantity is not a positive int
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidTransactionError(f"Quantity must be a whole number, got {quantity!r}")
    if quantity <= 0:
        raise InvalidTransactionError(f"Quantity must be positive, got {quantity}")


def validate_price(price: Decimal) -> None:
    """
    Check that a price is a finite, non-negative Decimal.

    Raises:
        InvalidTransactionError: If price is negative or not finite
    """
    if not isinstance(price, Decimal) or not price.is_finite():
        raise InvalidTransactionError(f"Price must be a finite decimal, got {price!r}")
    if price < 0:
        raise InvalidTransactionError(f"Price cannot be negative, got {price}")


def open_holding(
    holding_type: HoldingType,
    symbol: str,
    name: str,
    quantity: int,
    price: Decimal,
    fees: FeeSchedule,
) -> Holding:
    """
    Create a holding for the first purchase of a symbol.

    Args:
        holding_type: Stock or mutual fund
        symbol: Ticker symbol
        name: Display name
        quantity: Units bought
        price: Per-unit purchase price
        fees: Fee schedule in effect

    Returns:
        New Holding with book value and payment set by the type's rules

    Raises:
        InvalidTransactionError: If quantity or price is invalid
    """
    validate_quantity(quantity)
    validate_price(price)

    return Holding(
        holding_type=holding_type,
        symbol=symbol.strip(),
        name=name.strip(),
        quantity=quantity,
        price=price,
        book_value=calculate_book_value(holding_type, quantity, price, fees),
        payment=calculate_payment(holding_type, quantity, price, fees),
    )


def buy(
    holding: Holding,
    quantity: int,
    price: Decimal,
    fees: FeeSchedule,
) -> Holding:
    """
    Add units to an existing holding.

    Book value grows by the cost of the new units including any purchase fee;
    payment reflects this purchase only.

    Raises:
        InvalidTransactionError: If quantity or price is invalid
    """
    validate_quantity(quantity)
    validate_price(price)

    holding.quantity += quantity
    holding.book_value += calculate_book_value(holding.holding_type, quantity, price, fees)
    holding.price = price
    holding.payment = calculate_payment(holding.holding_type, quantity, price, fees)
    return holding


def sell(
    holding: Holding,
    quantity: int,
    price: Decimal,
    fees: FeeSchedule,
) -> SaleResult:
    """
    Sell units of a holding.

    The book value removed is proportional to the share of units sold,
    computed against the quantity held before the sale.

    Args:
        holding: Holding to sell from
        quantity: Units to sell (1..holding.quantity)
        price: Per-unit sale price
        fees: Fee schedule in effect

    Returns:
        SaleResult with the realized gain; ``closed`` is True when no units remain

    Raises:
        InvalidTransactionError: If quantity is not a whole number or price is invalid
        InsufficientQuantityError: If quantity is not in 1..holding.quantity
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidTransactionError(f"Quantity must be a whole number, got {quantity!r}")
    validate_price(price)
    if quantity <= 0 or quantity > holding.quantity:
        raise InsufficientQuantityError(holding.symbol, quantity, holding.quantity)

    book_value_sold = holding.book_value * quantity / holding.quantity
    realized_gain = round_money(
        quantity * price
        - calculate_sale_fee(holding.holding_type, fees)
        - book_value_sold
    )

    holding.book_value -= book_value_sold
    holding.quantity -= quantity
    holding.price = price
    if holding.quantity == 0:
        holding.book_value = Decimal("0")

    return SaleResult(
        symbol=holding.symbol,
        quantity_sold=quantity,
        sale_price=price,
        book_value_sold=book_value_sold,
        realized_gain=realized_gain,
        remaining_quantity=holding.quantity,
        closed=holding.quantity == 0,
    )


def update_price(
    holding: Holding,
    price: Decimal,
    fees: FeeSchedule,
) -> Holding:
    """
    Set a new market price; payment is recomputed, book value is unchanged.

    Raises:
        InvalidTransactionError: If price is invalid
    """
    validate_price(price)

    holding.price = price
    holding.payment = calculate_payment(holding.holding_type, holding.quantity, price, fees)
    return holding
