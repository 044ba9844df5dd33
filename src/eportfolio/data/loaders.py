"""
Loading and saving of the portfolio text file, and holdings report export.

The portfolio file holds one record per holding as ``Key = value`` lines,
with records separated by a blank line. Records that cannot be parsed are
skipped and reported rather than aborting the load.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import pandas as pd

from eportfolio.models import FeeSchedule, Holding, HoldingType
from eportfolio.data.schemas import (
    HOLDING_RECORD_SCHEMA,
    HOLDINGS_REPORT_SCHEMA,
    RecordSchema,
)
from eportfolio.portfolio.valuation import calculate_gain, round_money


logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when the portfolio file cannot be read or written."""
    pass


class MalformedRecordError(Exception):
    """Raised while parsing a single record that cannot be used."""
    pass


@dataclass(frozen=True)
class SkippedRecord:
    """
    A record left out of a load.

    Attributes:
        line_number: 1-based line where the record starts
        reason: Why the record was skipped
        symbol: Symbol of the record, if it could be read
    """
    line_number: int
    reason: str
    symbol: Optional[str] = None


@dataclass
class LoadResult:
    """Holdings read from a portfolio file plus any records that were skipped."""
    holdings: list[Holding] = field(default_factory=list)
    skipped: list[SkippedRecord] = field(default_factory=list)


def load_portfolio_file(file_path: str | Path) -> LoadResult:
    """
    Load holdings from a portfolio file.

    A missing file is an empty portfolio. Records with an unknown type,
    missing fields, unparseable numbers, a non-positive quantity, negative
    amounts or a repeated symbol are skipped and logged.

    Args:
        file_path: Path to the portfolio text file

    Returns:
        LoadResult with holdings in file order

    Raises:
        PersistenceError: If the file exists but cannot be read
    """
    file_path = Path(file_path)
    result = LoadResult()

    if not file_path.exists():
        logger.info("Portfolio file %s not found; starting empty", file_path)
        return result

    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PersistenceError(f"Failed to read portfolio file {file_path}: {e}")

    seen_symbols: set[str] = set()
    for line_number, lines in _split_records(text):
        try:
            fields = _parse_fields(lines)
            holding = _parse_holding(fields, HOLDING_RECORD_SCHEMA)
        except MalformedRecordError as e:
            symbol = _peek_symbol(lines)
            logger.warning("Skipping record at line %d: %s", line_number, e)
            result.skipped.append(SkippedRecord(line_number, str(e), symbol))
            continue

        key = holding.symbol.lower()
        if key in seen_symbols:
            reason = f"Duplicate symbol {holding.symbol}"
            logger.warning("Skipping record at line %d: %s", line_number, reason)
            result.skipped.append(SkippedRecord(line_number, reason, holding.symbol))
            continue

        seen_symbols.add(key)
        result.holdings.append(holding)

    return result


def save_portfolio_file(
    holdings: list[Holding],
    output_path: str | Path,
) -> Path:
    """
    Overwrite the portfolio file with the given holdings.

    Args:
        holdings: Holdings in portfolio order
        output_path: Path to the portfolio text file

    Returns:
        Path to the saved file

    Raises:
        PersistenceError: If the file cannot be written
    """
    output_path = Path(output_path)
    content = "".join(format_record(h) for h in holdings)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Failed to write portfolio file {output_path}: {e}")

    return output_path


def format_record(holding: Holding) -> str:
    """Render one holding as a record followed by a blank separator line."""
    return (
        f"Type = {holding.holding_type.value}\n"
        f"Symbol = {holding.symbol}\n"
        f"Name = {holding.name}\n"
        f"Quantity = {holding.quantity}\n"
        f"Price = {round_money(holding.price)}\n"
        f"BookValue = {round_money(holding.book_value)}\n"
        "\n"
    )


def export_holdings_report(
    holdings: list[Holding],
    output_path: str | Path,
    fees: FeeSchedule,
) -> Path:
    """
    Save holdings with their current gain to a CSV file.

    Args:
        holdings: Holdings in portfolio order
        output_path: Path for output CSV file
        fees: Fee schedule used to value each holding

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for position, holding in enumerate(holdings):
        records.append({
            "position": position,
            "type": holding.holding_type.value,
            "symbol": holding.symbol,
            "name": holding.name,
            "quantity": holding.quantity,
            "price": float(round_money(holding.price)),
            "book_value": float(round_money(holding.book_value)),
            "payment": float(round_money(holding.payment)),
            "gain": float(calculate_gain(holding, holding.price, fees)),
        })

    df = pd.DataFrame(records, columns=HOLDINGS_REPORT_SCHEMA.all_fields)
    df.to_csv(output_path, index=False)

    return output_path


def _split_records(text: str) -> list[tuple[int, list[str]]]:
    """Group non-blank lines into records, remembering each start line."""
    records: list[tuple[int, list[str]]] = []
    current: list[str] = []
    start = 0

    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            if current:
                records.append((start, current))
                current = []
            continue
        if not current:
            start = line_number
        current.append(line)

    if current:
        records.append((start, current))

    return records


def _parse_fields(lines: list[str]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition("=")
        if not sep:
            raise MalformedRecordError(f"Expected 'Key = value', got {line.strip()!r}")
        fields[key.strip()] = value.strip()
    return fields


def _parse_holding(fields: dict[str, str], schema: RecordSchema) -> Holding:
    is_valid, missing = schema.validate_fields(list(fields))
    if not is_valid:
        raise MalformedRecordError(f"Missing fields: {missing}")

    try:
        holding_type = HoldingType.parse(fields["Type"])
    except ValueError:
        raise MalformedRecordError(f"Unknown type {fields['Type']!r}")

    symbol = fields["Symbol"]
    if not symbol:
        raise MalformedRecordError("Empty symbol")

    try:
        quantity = int(fields["Quantity"])
    except ValueError:
        raise MalformedRecordError(f"Invalid quantity {fields['Quantity']!r}")
    if quantity <= 0:
        raise MalformedRecordError(f"Quantity must be positive, got {quantity}")

    price = _parse_amount(fields["Price"], "price")
    book_value = _parse_amount(fields["BookValue"], "book value")

    return Holding(
        holding_type=holding_type,
        symbol=symbol,
        name=fields["Name"],
        quantity=quantity,
        price=price,
        book_value=book_value,
    )


def _parse_amount(value: str, label: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise MalformedRecordError(f"Invalid {label} {value!r}")
    if not amount.is_finite() or amount < 0:
        raise MalformedRecordError(f"Invalid {label} {value!r}")
    return amount


def _peek_symbol(lines: list[str]) -> Optional[str]:
    for line in lines:
        key, sep, value = line.partition("=")
        if sep and key.strip() == "Symbol":
            return value.strip() or None
    return None
