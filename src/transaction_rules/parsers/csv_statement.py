from decimal import Decimal
from pathlib import Path
from typing import List, Optional

import pandas as pd

from transaction_rules.domain.models import Transaction
from transaction_rules.logging_setup import get_logger
from transaction_rules.parsers.base import TransactionParser

logger = get_logger(__name__)


class CsvStatementParser(TransactionParser):
    """
    Parser for bank transaction CSV exports.

    Handles two amount layouts:
    - a single signed `amount` column (positive=received, negative=spent)
    - separate `spent` and `received` columns

    Column names are matched case-insensitively. Optional columns:
    `id`, `reference`, `contact_id`, `account_id`.

    Example:
        parser = CsvStatementParser()
        transactions = parser.parse('statement.csv')
    """

    extensions = [".csv"]

    DATE_COL = "date"
    DESCRIPTION_COL = "description"
    AMOUNT_COL = "amount"
    SPENT_COL = "spent"
    RECEIVED_COL = "received"
    ID_COL = "id"
    REFERENCE_COL = "reference"
    CONTACT_COL = "contact_id"
    ACCOUNT_COL = "account_id"

    def __init__(self, default_account_id: Optional[str] = None):
        """
        Args:
            default_account_id: Account to assign when the file has no
                account_id column (a statement usually covers one account)
        """
        self.default_account_id = default_account_id

    def validate_file(self, filepath):
        """
        Check the file exists, is a CSV, and has the required columns.

        :param filepath: Path to the CSV file
        """
        path = Path(filepath)

        if not path.exists():
            raise FileNotFoundError(f"File does not exist on path {path}")

        if path.suffix.lower() not in self.extensions:
            raise ValueError(f"File must be .csv, got {path.suffix}")

        try:
            df = pd.read_csv(filepath, nrows=0)
        except Exception as e:
            raise ValueError(f"Could not read CSV header: {e}")

        self._validate_columns(self._normalize_columns(df))

    def parse(self, filepath: str) -> List[Transaction]:
        """
        Parse a CSV statement.

        Rows that can't be parsed are skipped with a warning.
        """
        self.validate_file(filepath)

        try:
            df = pd.read_csv(filepath, dtype=str, keep_default_na=False)
        except Exception as e:
            raise ValueError(f"Failed to read CSV file: {e}")

        df = self._normalize_columns(df)

        transactions = []
        for index, row in df.iterrows():
            try:
                transactions.append(self._parse_row(row, index))
            except (ValueError, ArithmeticError) as e:
                logger.warning("Skipping row %d of %s: %s", index + 1, filepath, e)
                continue

        return transactions

    def _normalize_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        df.columns = [str(col).strip().lower().replace(" ", "_") for col in df.columns]
        return df

    def _validate_columns(self, df: pd.DataFrame) -> None:
        """Ensure all required columns are present"""
        required_columns = [self.DATE_COL, self.DESCRIPTION_COL]
        missing = [col for col in required_columns if col not in df.columns]

        has_amount = self.AMOUNT_COL in df.columns
        has_split_amounts = self.SPENT_COL in df.columns or self.RECEIVED_COL in df.columns
        if not has_amount and not has_split_amounts:
            missing.append(f"{self.AMOUNT_COL} (or {self.SPENT_COL}/{self.RECEIVED_COL})")

        if missing:
            raise ValueError(
                f"Missing required columns: {missing}. "
                f"Available columns: {list(df.columns)}"
            )

    def _parse_money(self, value: str) -> Optional[Decimal]:
        cleaned = str(value).replace('$', '').replace(',', '').strip()
        if not cleaned:
            return None
        # Accounting format for negatives: (12.50)
        if cleaned.startswith('(') and cleaned.endswith(')'):
            cleaned = '-' + cleaned[1:-1]
        amount = Decimal(cleaned)
        if not amount.is_finite():
            raise ValueError(f"Amount is not a finite number: {value}")
        return amount

    def _cell(self, row: pd.Series, column: str) -> Optional[str]:
        value = str(row.get(column, "")).strip()
        return value or None

    def _parse_row(self, row: pd.Series, index: int) -> Transaction:
        """Parse a single row into a Transaction."""
        date = pd.to_datetime(row[self.DATE_COL]).date()

        spent = self._parse_money(row.get(self.SPENT_COL, ""))
        received = self._parse_money(row.get(self.RECEIVED_COL, ""))
        if spent is None and received is None:
            amount = self._parse_money(row.get(self.AMOUNT_COL, ""))
            if amount is None:
                raise ValueError("Row has no amount")
            if amount >= 0:
                received = amount
            else:
                spent = -amount

        return Transaction(
            id=self._cell(row, self.ID_COL) or f"row-{index + 1}",
            description=str(row[self.DESCRIPTION_COL]).strip(),
            spent=abs(spent) if spent is not None else None,
            received=abs(received) if received is not None else None,
            account_id=self._cell(row, self.ACCOUNT_COL) or self.default_account_id,
            reference_number=self._cell(row, self.REFERENCE_COL),
            contact_id=self._cell(row, self.CONTACT_COL),
            date=date,
        )
