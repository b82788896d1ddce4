from abc import ABC, abstractmethod
from typing import List
from transaction_rules.domain.models import Transaction

class TransactionParser(ABC):
    """
    Reads a statement file of one format into rule engine transactions.

    Parsers are registered in ParserFactory under a format name ('csv',
    'json'). `extensions` lists the file suffixes the format claims, so
    the factory can pick a parser from a file name alone.
    """

    extensions: List[str] = []

    @abstractmethod
    def parse(self, filepath: str) -> List[Transaction]:
        """
        Read every usable transaction from the file.

        Each Transaction carries a non-negative `spent` or `received`.
        Rows that can't be read are skipped and logged, so one bad row
        doesn't lose the rest of the statement.

        Raises:
            FileNotFoundError: If the file is missing
            ValueError: If the file as a whole isn't in this format
        """
        pass

    @abstractmethod
    def validate_file(self, filepath: str):
        """
        Check the file's suffix is one of `extensions` and its structure
        is readable, without parsing rows.

        Raises:
            FileNotFoundError: If the file is missing
            ValueError: If the suffix or structure doesn't fit
        """
        pass
