"""
Append-only transaction journal for the ePortfolio tracker.

Every change to the portfolio is logged with a timestamp and its figures so
the history of a holding can be reconstructed from the journal alone.
"""

import json
from datetime import datetime, date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from eportfolio.config import AppConfig
from eportfolio.models import (
    ActionType,
    Holding,
    JournalEntry,
    SaleResult,
)


class TransactionLogger:
    """
    Append-only transaction logger.

    Writes all actions to a JSONL file. Each line is a complete JSON object
    representing one action.
    """

    def __init__(self, log_path: str | Path):
        """
        Initialize the transaction logger.

        Args:
            log_path: Path to the log file (will be created if not exists)
        """
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: JournalEntry) -> None:
        """
        Write a journal entry.

        Args:
            entry: JournalEntry to write
        """
        record = {
            "timestamp": entry.timestamp.isoformat(),
            "action_type": entry.action_type.value,
            "symbol": entry.symbol,
            "details": entry.details,
        }

        with open(self.log_path, "a") as f:
            f.write(json.dumps(record, cls=DecimalEncoder) + "\n")

    def log_config_loaded(
        self,
        config: AppConfig,
        config_path: Optional[str] = None,
    ) -> None:
        """
        Log configuration loading.

        Args:
            config: Loaded configuration
            config_path: Path to the YAML file, if one was used
        """
        details = {
            "config_path": config_path,
            "portfolio_file": str(config.portfolio_file),
            "commission": str(config.fees.commission),
            "redemption_fee": str(config.fees.redemption_fee),
        }
        self.log(JournalEntry.create(ActionType.CONFIG_LOADED, None, details))

    def log_portfolio_loaded(
        self,
        file_path: str | Path,
        num_holdings: int,
        num_skipped: int,
    ) -> None:
        """Log a portfolio file load."""
        details = {
            "file": str(file_path),
            "num_holdings": num_holdings,
            "num_skipped": num_skipped,
        }
        self.log(JournalEntry.create(ActionType.PORTFOLIO_LOADED, None, details))

    def log_holding_bought(
        self,
        holding: Holding,
        quantity: int,
        price: Decimal,
    ) -> None:
        """
        Log a purchase.

        Args:
            holding: Holding after the purchase
            quantity: Units bought
            price: Per-unit purchase price
        """
        details = {
            "type": holding.holding_type.value,
            "quantity": quantity,
            "price": str(price),
            "payment": str(holding.payment),
            "total_quantity": holding.quantity,
            "book_value": str(holding.book_value),
        }
        self.log(JournalEntry.create(ActionType.HOLDING_BOUGHT, holding.symbol, details))

    def log_holding_sold(self, result: SaleResult) -> None:
        """
        Log a sale.

        Args:
            result: Outcome of the sale
        """
        details = {
            "quantity": result.quantity_sold,
            "price": str(result.sale_price),
            "book_value_sold": str(result.book_value_sold),
            "realized_gain": str(result.realized_gain),
            "remaining_quantity": result.remaining_quantity,
            "closed": result.closed,
        }
        self.log(JournalEntry.create(ActionType.HOLDING_SOLD, result.symbol, details))

    def log_prices_updated(
        self,
        prices: dict[str, Decimal],
        gains: dict[str, Decimal],
    ) -> None:
        """
        Log a batch of price updates.

        Args:
            prices: Symbol -> new price
            gains: Symbol -> gain at the new price
        """
        details = {
            "prices": {symbol: str(price) for symbol, price in prices.items()},
            "gains": {symbol: str(gain) for symbol, gain in gains.items()},
        }
        self.log(JournalEntry.create(ActionType.PRICES_UPDATED, None, details))

    def log_portfolio_saved(self, file_path: str | Path, num_holdings: int) -> None:
        """Log a portfolio file save."""
        details = {
            "file": str(file_path),
            "num_holdings": num_holdings,
        }
        self.log(JournalEntry.create(ActionType.PORTFOLIO_SAVED, None, details))

    def read_log(self) -> list[JournalEntry]:
        """
        Read all entries from the log file.

        Returns:
            List of JournalEntry objects
        """
        if not self.log_path.exists():
            return []

        entries = []
        with open(self.log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                entries.append(
                    JournalEntry(
                        timestamp=datetime.fromisoformat(record["timestamp"]),
                        action_type=ActionType(record["action_type"]),
                        symbol=record.get("symbol"),
                        details=record.get("details", {}),
                    )
                )

        return entries

    def filter_by_symbol(self, symbol: str) -> list[JournalEntry]:
        """
        Get log entries for one symbol (case-insensitive).

        Args:
            symbol: Symbol to filter by

        Returns:
            Filtered list of entries
        """
        wanted = symbol.lower()
        return [
            e for e in self.read_log()
            if e.symbol is not None and e.symbol.lower() == wanted
        ]

    def filter_by_action_type(
        self,
        action_type: ActionType,
    ) -> list[JournalEntry]:
        """
        Get log entries of a specific action type.

        Args:
            action_type: Action type to filter by

        Returns:
            Filtered list of entries
        """
        return [e for e in self.read_log() if e.action_type == action_type]


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


# Global logger instance (initialized on first use)
_global_logger: Optional[TransactionLogger] = None


def get_logger(log_path: Optional[str | Path] = None) -> TransactionLogger:
    """
    Get or create the global transaction logger.

    Args:
        log_path: Optional path to (re)initialize the logger with

    Returns:
        TransactionLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if log_path is None:
            log_path = "eportfolio_journal.jsonl"
        _global_logger = TransactionLogger(log_path)
    elif log_path is not None:
        _global_logger = TransactionLogger(log_path)

    return _global_logger
