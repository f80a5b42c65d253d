"""CSV import domain service."""

import csv
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

from taxledger.domain.engine import AccountingEngine
from taxledger.domain.entities import ImportResult, RawTransaction, RawTransactionType
from taxledger.utils.amount_parser import parse_amount
from taxledger.utils.date_parser import parse_date

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("id", "date", "description", "amount")
OPTIONAL_COLUMNS = ("category", "type", "resident", "acquisition_cost")

TRUE_VALUES = {"1", "true", "yes", "y", "resident"}
FALSE_VALUES = {"0", "false", "no", "n", "non-resident", "non_resident"}


def build_transaction(
    transaction_id: str,
    txn_date: date,
    description: str,
    amount: Decimal,
    category: Optional[str] = None,
    raw_type: Optional[str] = None,
    is_resident: bool = True,
    acquisition_cost: Optional[Decimal] = None,
    source: str = "manual",
) -> RawTransaction:
    """Build a raw transaction from signed user input.

    A negative amount is stored as its magnitude and, when no type is given,
    treated as an expense.

    Raises:
        ValueError: If the type is not a known raw transaction type
    """
    if raw_type:
        try:
            txn_type = RawTransactionType(raw_type.strip().lower())
        except ValueError:
            valid = ", ".join(t.value for t in RawTransactionType)
            raise ValueError(f"Unknown transaction type '{raw_type}'. Use one of: {valid}")
    elif amount < 0:
        txn_type = RawTransactionType.EXPENSE
    else:
        txn_type = RawTransactionType.OTHER

    return RawTransaction(
        id=transaction_id,
        date=txn_date,
        description=description,
        category=category or "",
        amount=abs(amount),
        type=txn_type,
        is_resident=is_resident,
        acquisition_cost=acquisition_cost,
        source=source,
    )


def _parse_flag(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"Invalid yes/no value '{value}'")


class CSVImportService:
    """Service for importing transactions from CSV files."""

    def __init__(self, engine: AccountingEngine):
        """Initialize CSV import service.

        Args:
            engine: Engine the parsed transactions are processed by
        """
        self.engine = engine

    def read_csv(self, csv_file_path: str) -> tuple[list[RawTransaction], list[str]]:
        """Parse a CSV file into raw transactions.

        Columns are matched case-insensitively. ``id``, ``date``,
        ``description`` and ``amount`` are required; ``category``, ``type``,
        ``resident`` and ``acquisition_cost`` are optional.

        Args:
            csv_file_path: Path to CSV file

        Returns:
            Tuple of (parsed transactions, row error messages)

        Raises:
            ValueError: If the file has no header or lacks required columns
            FileNotFoundError: If CSV file doesn't exist
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        transactions = []
        errors = []

        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            # Try to detect delimiter
            sample = f.read(1024)
            f.seek(0)
            try:
                delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
            except csv.Error:
                delimiter = ","

            reader = csv.DictReader(f, delimiter=delimiter)
            if reader.fieldnames is None:
                raise ValueError("CSV file has no columns")

            columns = {name.strip().lower(): name for name in reader.fieldnames if name}
            missing = [column for column in REQUIRED_COLUMNS if column not in columns]
            if missing:
                raise ValueError(f"CSV file missing required columns: {', '.join(missing)}")

            # Start at 2 (header is row 1)
            for row_num, row in enumerate(reader, start=2):
                values = {
                    column: (row.get(columns[column]) or "").strip()
                    for column in REQUIRED_COLUMNS + OPTIONAL_COLUMNS
                    if column in columns
                }

                if not values["id"]:
                    errors.append(f"Row {row_num}: Missing id")
                    continue
                if not values["date"]:
                    errors.append(f"Row {row_num}: Missing date")
                    continue
                if not values["amount"]:
                    errors.append(f"Row {row_num}: Missing amount")
                    continue

                try:
                    acquisition_cost = values.get("acquisition_cost")
                    resident = values.get("resident")
                    transactions.append(
                        build_transaction(
                            transaction_id=values["id"],
                            txn_date=parse_date(values["date"]),
                            description=values["description"],
                            amount=parse_amount(values["amount"]),
                            category=values.get("category"),
                            raw_type=values.get("type"),
                            is_resident=_parse_flag(resident) if resident else True,
                            acquisition_cost=parse_amount(acquisition_cost) if acquisition_cost else None,
                            source="import",
                        )
                    )
                except ValueError as e:
                    errors.append(f"Row {row_num}: {e}")

        logger.debug("Read %d transactions from %s", len(transactions), csv_path)
        return transactions, errors

    def import_csv(self, csv_file_path: str) -> ImportResult:
        """Import transactions from a CSV file.

        Rows that cannot be parsed are reported alongside transactions the
        engine rejects; neither stops the rest of the file.

        Args:
            csv_file_path: Path to CSV file

        Returns:
            Import result with counts and error messages

        Raises:
            ValueError: If the file has no header or lacks required columns
            FileNotFoundError: If CSV file doesn't exist
        """
        transactions, row_errors = self.read_csv(csv_file_path)
        result = self.engine.import_transactions(transactions)
        return ImportResult(
            imported=result.imported,
            skipped=result.skipped,
            errors=tuple(row_errors) + result.errors,
        )
