"""
Transaction journal module for the ePortfolio tracker.

Provides append-only logging of portfolio actions.
"""

from eportfolio.logging.transaction_log import (
    TransactionLogger,
    get_logger,
)

__all__ = [
    "TransactionLogger",
    "get_logger",
]
