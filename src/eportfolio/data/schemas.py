"""
Record schemas for the portfolio file and the holdings report.

Defines the expected fields of each portfolio record and the columns of the
exported CSV report.
"""

from dataclasses import dataclass


@dataclass
class FieldSchema:
    """Schema definition for a single ``Key = value`` line."""
    name: str
    dtype: str  # "str", "int" or "decimal"
    required: bool = True


@dataclass
class RecordSchema:
    """Schema definition for one record (or report row)."""
    name: str
    fields: list[FieldSchema]
    description: str

    @property
    def required_fields(self) -> list[str]:
        """Get list of required field names."""
        return [f.name for f in self.fields if f.required]

    @property
    def all_fields(self) -> list[str]:
        """Get list of all field names, in file order."""
        return [f.name for f in self.fields]

    def validate_fields(self, present: list[str]) -> tuple[bool, list[str]]:
        """
        Validate that a record has the required fields.

        Args:
            present: Field names found in the record

        Returns:
            Tuple of (is_valid, list of missing fields)
        """
        missing = [name for name in self.required_fields if name not in present]
        return len(missing) == 0, missing


# Portfolio file record
HOLDING_RECORD_SCHEMA = RecordSchema(
    name="holding_record",
    description="One holding in the portfolio text file",
    fields=[
        FieldSchema(name="Type", dtype="str"),
        FieldSchema(name="Symbol", dtype="str"),
        FieldSchema(name="Name", dtype="str"),
        FieldSchema(name="Quantity", dtype="int"),
        FieldSchema(name="Price", dtype="decimal"),
        FieldSchema(name="BookValue", dtype="decimal"),
    ],
)

# Holdings report (CSV output)
HOLDINGS_REPORT_SCHEMA = RecordSchema(
    name="holdings_report",
    description="Holdings with current valuation, one row per holding",
    fields=[
        FieldSchema(name="position", dtype="int"),
        FieldSchema(name="type", dtype="str"),
        FieldSchema(name="symbol", dtype="str"),
        FieldSchema(name="name", dtype="str"),
        FieldSchema(name="quantity", dtype="int"),
        FieldSchema(name="price", dtype="decimal"),
        FieldSchema(name="book_value", dtype="decimal"),
        FieldSchema(name="payment", dtype="decimal"),
        FieldSchema(name="gain", dtype="decimal"),
    ],
)
