"""
Core data models for the ePortfolio investment tracker.

This module defines the fundamental data structures used throughout the system,
including holdings, fee schedules, sale results and journal entries.
All monetary amounts use Decimal for precision; quantities are whole units.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class HoldingType(Enum):
    """Kind of holding. Values are the persisted ``Type`` strings."""
    STOCK = "stock"
    MUTUAL_FUND = "mutualfund"

    @classmethod
    def parse(cls, value: str) -> "HoldingType":
        """
        Parse a holding type string case-insensitively.

        Args:
            value: Raw type string (e.g. "Stock", "mutualfund")

        Returns:
            Matching HoldingType

        Raises:
            ValueError: If the string names no known holding type
        """
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown holding type: {value!r}")


class ActionType(Enum):
    """Types of logged actions for the transaction journal."""
    CONFIG_LOADED = "CONFIG_LOADED"
    PORTFOLIO_LOADED = "PORTFOLIO_LOADED"
    HOLDING_BOUGHT = "HOLDING_BOUGHT"
    HOLDING_SOLD = "HOLDING_SOLD"
    PRICES_UPDATED = "PRICES_UPDATED"
    PORTFOLIO_SAVED = "PORTFOLIO_SAVED"


@dataclass(frozen=True)
class FeeSchedule:
    """
    Transaction fees applied by the valuation rules.

    Attributes:
        commission: Flat fee charged on every stock buy and on every sale
        redemption_fee: Flat fee deducted when fund units are redeemed
    """
    commission: Decimal = Decimal("9.99")
    redemption_fee: Decimal = Decimal("45.00")


@dataclass
class Holding:
    """
    A single tracked position, identified by symbol.

    Attributes:
        holding_type: Stock or mutual fund
        symbol: Ticker symbol (matched case-insensitively)
        name: Display name, tokenized for keyword search
        quantity: Units held
        price: Most recent per-unit price
        book_value: Cumulative cost basis including fees
        payment: Cost or proceeds of the most recent transaction
        last_gain: Gain from the most recent valuation (not persisted)
    """
    holding_type: HoldingType
    symbol: str
    name: str
    quantity: int
    price: Decimal
    book_value: Decimal
    payment: Decimal = Decimal("0")
    last_gain: Optional[Decimal] = None

    def matches_symbol(self, symbol: str) -> bool:
        """Case-insensitive symbol comparison."""
        return self.symbol.lower() == symbol.strip().lower()

    def __str__(self) -> str:
        label = "Stock" if self.holding_type is HoldingType.STOCK else "Mutual Fund"
        return (
            f"{label} -> Symbol: {self.symbol}, Name: {self.name}, "
            f"Quantity: {self.quantity}, Price: ${self.price:,.2f}, "
            f"Book Value: ${self.book_value:,.2f}"
        )


@dataclass(frozen=True)
class SaleResult:
    """
    Outcome of selling units of a holding.

    Attributes:
        symbol: Symbol sold
        quantity_sold: Units sold
        sale_price: Per-unit sale price
        book_value_sold: Proportional book value removed by the sale
        realized_gain: Proceeds less sale fee less book value sold, 2dp
        remaining_quantity: Units still held after the sale
        closed: True if the holding was fully sold and removed
    """
    symbol: str
    quantity_sold: int
    sale_price: Decimal
    book_value_sold: Decimal
    realized_gain: Decimal
    remaining_quantity: int
    closed: bool


@dataclass(frozen=True)
class SearchMatch:
    """A holding matched by a search, with its position in the portfolio."""
    position: int
    holding: Holding


@dataclass
class JournalEntry:
    """
    Entry for the append-only transaction journal.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        symbol: Holding involved (if applicable)
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    symbol: Optional[str]
    details: dict = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        symbol: Optional[str],
        details: dict,
    ) -> "JournalEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=datetime.now(),
            action_type=action_type,
            symbol=symbol,
            details=details,
        )
