"""
Persistence module for the ePortfolio tracker.

Provides loading and saving of the portfolio text file and CSV export of
the holdings report.
"""

from eportfolio.data.loaders import (
    load_portfolio_file,
    save_portfolio_file,
    export_holdings_report,
    LoadResult,
    SkippedRecord,
    PersistenceError,
)
from eportfolio.data.schemas import (
    HOLDING_RECORD_SCHEMA,
    HOLDINGS_REPORT_SCHEMA,
)

__all__ = [
    "load_portfolio_file",
    "save_portfolio_file",
    "export_holdings_report",
    "LoadResult",
    "SkippedRecord",
    "PersistenceError",
    "HOLDING_RECORD_SCHEMA",
    "HOLDINGS_REPORT_SCHEMA",
]
