"""
Portfolio management module for the ePortfolio tracker.

Provides the valuation rules, holding transactions, keyword index and the
portfolio store that ties them together.
"""

from eportfolio.portfolio.store import (
    Portfolio,
    PortfolioError,
    HoldingNotFoundError,
    InsufficientQuantityError,
    InvalidHoldingTypeError,
    InvalidTransactionError,
)
from eportfolio.portfolio.keyword_index import KeywordIndex
from eportfolio.portfolio.valuation import (
    calculate_book_value,
    calculate_payment,
    calculate_gain,
)

__all__ = [
    "Portfolio",
    "PortfolioError",
    "HoldingNotFoundError",
    "InsufficientQuantityError",
    "InvalidHoldingTypeError",
    "InvalidTransactionError",
    "KeywordIndex",
    "calculate_book_value",
    "calculate_payment",
    "calculate_gain",
]
