import json
from pathlib import Path
from typing import List

from transaction_rules.domain.models import Transaction
from transaction_rules.errors import RulePayloadError
from transaction_rules.logging_setup import get_logger
from transaction_rules.parsers.base import TransactionParser
from transaction_rules.parsers.rule_payload import parse_transaction

logger = get_logger(__name__)


class JsonStatementParser(TransactionParser):
    """
    Parser for transactions exported as JSON.

    Accepts a list of transaction objects or `{"transactions": [...]}`,
    each in the shape read by `parse_transaction`.
    """

    extensions = [".json"]

    def validate_file(self, filepath):
        path = Path(filepath)

        if not path.exists():
            raise FileNotFoundError(f"File does not exist on path {path}")

        if path.suffix.lower() not in self.extensions:
            raise ValueError(f"File must be .json, got {path.suffix}")

    def parse(self, filepath: str) -> List[Transaction]:
        self.validate_file(filepath)

        try:
            with open(filepath) as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to read JSON file: {e}")

        items = document.get("transactions", []) if isinstance(document, dict) else document
        if not isinstance(items, list):
            raise ValueError("Expected a list of transactions")

        transactions = []
        for i, item in enumerate(items):
            try:
                transactions.append(parse_transaction(item, default_id=f"row-{i + 1}"))
            except (ValueError, RulePayloadError) as e:
                logger.warning("Skipping transaction %d of %s: %s", i + 1, filepath, e)
                continue

        return transactions
