"""
Portfolio store: the ordered collection of holdings and its keyword index.

All mutation of holdings goes through ``Portfolio``. Each public operation
validates its arguments before changing anything, and any removal updates the
keyword index in the same step, so the collection and the index always agree
between calls. Accessors hand out copies of holdings.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from decimal import Decimal
from pathlib import Path
from typing import Optional

from eportfolio.models import (
    FeeSchedule,
    Holding,
    HoldingType,
    SaleResult,
    SearchMatch,
)
from eportfolio.portfolio import holdings as holding_ops
from eportfolio.portfolio.holdings import (
    InsufficientQuantityError,
    InvalidTransactionError,
    PortfolioError,
)
from eportfolio.portfolio.keyword_index import KeywordIndex
from eportfolio.portfolio.valuation import calculate_gain, round_money


logger = logging.getLogger(__name__)


class HoldingNotFoundError(PortfolioError):
    """Raised when no holding has the requested symbol."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"No holding with symbol {symbol!r}")


class InvalidHoldingTypeError(PortfolioError):
    """Raised when a buy names an unknown holding type."""
    pass


class Portfolio:
    """
    Ordered holdings plus a keyword index over their names.

    Holdings keep insertion order; a holding's position is its index in that
    order. Removing a holding compacts the list and shifts the index.

    Example:
        >>> portfolio = Portfolio()
        >>> _ = portfolio.buy("ABC", "stock", "Alpha Corp", 10, Decimal("50"))
        >>> [m.position for m in portfolio.search(keywords=["alpha"])]
        [0]
    """

    def __init__(self, fees: Optional[FeeSchedule] = None):
        """
        Initialize an empty portfolio.

        Args:
            fees: Fee schedule for all valuations (defaults to FeeSchedule())
        """
        self.fees = fees or FeeSchedule()
        self._holdings: list[Holding] = []
        self._index = KeywordIndex()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def holdings(self) -> list[Holding]:
        """Copies of all holdings, in position order."""
        return [replace(h) for h in self._holdings]

    @property
    def keyword_index(self) -> dict[str, list[int]]:
        """Copy of the keyword -> positions mapping."""
        return self._index.as_dict()

    def find(self, symbol: str) -> Optional[Holding]:
        """Copy of the holding with ``symbol``, or None."""
        position = self._position_of(symbol)
        if position is None:
            return None
        return replace(self._holdings[position])

    def position_of(self, symbol: str) -> Optional[int]:
        """Position of the holding with ``symbol``, or None."""
        return self._position_of(symbol)

    def __len__(self) -> int:
        return len(self._holdings)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and self._position_of(symbol) is not None

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def buy(
        self,
        symbol: str,
        holding_type: HoldingType | str,
        name: str,
        quantity: int,
        price: Decimal,
    ) -> Holding:
        """
        Buy units of a symbol, opening a new holding if it is not yet held.

        For an existing symbol the type and name arguments are ignored.

        Args:
            symbol: Ticker symbol (case-insensitive)
            holding_type: HoldingType or its string value
            name: Display name for a new holding
            quantity: Units to buy (> 0)
            price: Per-unit price (>= 0)

        Returns:
            Copy of the holding after the purchase

        Raises:
            InvalidHoldingTypeError: If the type is not stock or mutualfund
            InvalidTransactionError: If symbol, quantity or price is invalid
        """
        holding_type = _coerce_type(holding_type)
        if not symbol or not symbol.strip():
            raise InvalidTransactionError("Symbol cannot be empty")

        position = self._position_of(symbol)
        if position is not None:
            holding = holding_ops.buy(self._holdings[position], quantity, price, self.fees)
            logger.debug("Bought %d more %s at %s", quantity, holding.symbol, price)
            return replace(holding)

        if not name or not name.strip():
            raise InvalidTransactionError(f"A name is required for new holding {symbol}")

        holding = holding_ops.open_holding(
            holding_type, symbol, name, quantity, price, self.fees
        )
        self._append(holding)
        logger.debug("Opened %s %s at position %d", holding_type.value, holding.symbol,
                     len(self._holdings) - 1)
        return replace(holding)

    def sell(self, symbol: str, quantity: int, price: Decimal) -> SaleResult:
        """
        Sell units of a holding, removing it when none remain.

        Args:
            symbol: Ticker symbol (case-insensitive)
            quantity: Units to sell
            price: Per-unit sale price

        Returns:
            SaleResult with the realized gain

        Raises:
            HoldingNotFoundError: If the symbol is not held
            InsufficientQuantityError: If quantity is not between 1 and the units held
            InvalidTransactionError: If quantity or price is invalid
        """
        position = self._require_position(symbol)
        holding = self._holdings[position]

        result = holding_ops.sell(holding, quantity, price, self.fees)
        if result.closed:
            self._remove(position)
            logger.debug("Closed %s; removed from position %d", holding.symbol, position)
        return result

    def update_price(self, symbol: str, price: Decimal) -> Decimal:
        """
        Set a holding's price and value it at that price.

        Args:
            symbol: Ticker symbol (case-insensitive)
            price: New per-unit price

        Returns:
            Gain at the new price

        Raises:
            HoldingNotFoundError: If the symbol is not held
            InvalidTransactionError: If price is invalid
        """
        position = self._require_position(symbol)
        holding = holding_ops.update_price(self._holdings[position], price, self.fees)
        holding.last_gain = calculate_gain(holding, price, self.fees)
        return holding.last_gain

    def update_prices(self, prices: Mapping[str, Decimal]) -> dict[str, Decimal]:
        """
        Update several prices at once.

        Every symbol and price is checked before any holding changes.

        Args:
            prices: Symbol -> new price

        Returns:
            Symbol (as held) -> gain at the new price, in position order

        Raises:
            HoldingNotFoundError: If any symbol is not held
            InvalidTransactionError: If any price is invalid
        """
        resolved: dict[int, Decimal] = {}
        for symbol, price in prices.items():
            holding_ops.validate_price(price)
            resolved[self._require_position(symbol)] = price

        gains: dict[str, Decimal] = {}
        for position in sorted(resolved):
            holding = self._holdings[position]
            gains[holding.symbol] = self.update_price(holding.symbol, resolved[position])
        return gains

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def total_gain(self) -> Decimal:
        """
        Total gain across all holdings at their current prices, 2dp.

        Refreshes each holding's ``last_gain``.
        """
        total = Decimal("0")
        for holding in self._holdings:
            holding.last_gain = calculate_gain(holding, holding.price, self.fees)
            total += holding.last_gain
        return round_money(total)

    def search(
        self,
        symbol: Optional[str] = None,
        keywords: Iterable[str] = (),
        price_lower: Optional[Decimal] = None,
        price_upper: Optional[Decimal] = None,
    ) -> list[SearchMatch]:
        """
        Search holdings by symbol, name keywords and price range.

        Args:
            symbol: Exact symbol, case-insensitive (None or blank for any)
            keywords: Words that must all appear in the name (empty for any)
            price_lower: Inclusive lower price bound (None for unbounded)
            price_upper: Inclusive upper price bound (None for unbounded)

        Returns:
            Matches in ascending position order

        Raises:
            InvalidTransactionError: If a price bound is not a finite decimal
        """
        for bound in (price_lower, price_upper):
            if bound is not None and (not isinstance(bound, Decimal) or not bound.is_finite()):
                raise InvalidTransactionError(
                    f"Price bound must be a finite decimal, got {bound!r}"
                )

        candidates = self._index.lookup(keywords)
        if candidates is None:
            positions = range(len(self._holdings))
        else:
            positions = sorted(candidates)

        matches = []
        for position in positions:
            holding = self._holdings[position]
            if symbol and symbol.strip() and not holding.matches_symbol(symbol):
                continue
            if price_lower is not None and holding.price < price_lower:
                continue
            if price_upper is not None and holding.price > price_upper:
                continue
            matches.append(SearchMatch(position=position, holding=replace(holding)))
        return matches

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self, file_path: str | Path):
        """
        Replace the contents of this portfolio with a portfolio file.

        Args:
            file_path: Path to the portfolio text file

        Returns:
            LoadResult describing loaded and skipped records

        Raises:
            PersistenceError: If the file exists but cannot be read
        """
        from eportfolio.data.loaders import load_portfolio_file

        result = load_portfolio_file(file_path)

        self._holdings = []
        self._index.clear()
        for holding in result.holdings:
            self._append(holding)

        logger.info("Loaded %d holdings from %s (%d skipped)",
                    len(self._holdings), file_path, len(result.skipped))
        return result

    def save(self, file_path: str | Path) -> Path:
        """
        Overwrite a portfolio file with the current holdings.

        Raises:
            PersistenceError: If the file cannot be written
        """
        from eportfolio.data.loaders import save_portfolio_file

        return save_portfolio_file(self._holdings, file_path)

    @classmethod
    def from_file(
        cls,
        file_path: str | Path,
        fees: Optional[FeeSchedule] = None,
    ) -> "Portfolio":
        """Create a portfolio and load it from ``file_path``."""
        portfolio = cls(fees=fees)
        portfolio.load(file_path)
        return portfolio

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _position_of(self, symbol: str) -> Optional[int]:
        for position, holding in enumerate(self._holdings):
            if holding.matches_symbol(symbol):
                return position
        return None

    def _require_position(self, symbol: str) -> int:
        position = self._position_of(symbol)
        if position is None:
            raise HoldingNotFoundError(symbol)
        return position

    def _append(self, holding: Holding) -> None:
        self._holdings.append(holding)
        self._index.index(holding.name, len(self._holdings) - 1)

    def _remove(self, position: int) -> None:
        holding = self._holdings.pop(position)
        self._index.deindex(holding.name, position)
        self._index.shift_positions_after_removal(position)


def _coerce_type(holding_type: HoldingType | str) -> HoldingType:
    if isinstance(holding_type, HoldingType):
        return holding_type
    try:
        return HoldingType.parse(str(holding_type))
    except ValueError:
        raise InvalidHoldingTypeError(
            f"Invalid holding type {holding_type!r}; expected 'stock' or 'mutualfund'"
        )


__all__ = [
    "Portfolio",
    "PortfolioError",
    "HoldingNotFoundError",
    "InsufficientQuantityError",
    "InvalidHoldingTypeError",
    "InvalidTransactionError",
]
