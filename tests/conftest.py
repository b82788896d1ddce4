import json
import logging
from decimal import Decimal
from pathlib import Path

import pytest

from transaction_rules import logging_setup
from transaction_rules.domain.models import Transaction
from transaction_rules.parsers.factory import ParserFactory


@pytest.fixture(autouse=True)
def _isolate_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point user config lookups at an empty per-test directory"""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("TRANSACTION_RULES_CONFIG_DIR", str(config_dir))
    return config_dir


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Undo logging configuration and parser registration done by a test"""
    yield
    pkg_logger = logging.getLogger("transaction_rules")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True
    logging_setup._CONFIGURED = False
    ParserFactory.reset()


@pytest.fixture
def make_transaction():
    """Build transactions with sensible defaults"""

    def _make(
        description: str = "",
        spent=None,
        received=None,
        id: str = "txn-1",
        **kwargs,
    ) -> Transaction:
        return Transaction(
            id=id,
            description=description,
            spent=Decimal(str(spent)) if spent is not None else None,
            received=Decimal(str(received)) if received is not None else None,
            **kwargs,
        )

    return _make


@pytest.fixture
def parser_registry():
    """Register the packaged statement parsers"""
    ParserFactory.reset()
    ParserFactory.load_parsers_from_config()
    return ParserFactory


@pytest.fixture
def sample_csv_file(tmp_path: Path) -> Path:
    """Statement with a signed amount column"""
    path = tmp_path / "march.csv"
    path.write_text(
        "Date,Description,Amount,Reference\n"
        "2024-03-01,Payment from SUN LIFE INSURANCE,1250.00,SL-881\n"
        "2024-03-02,Service charge MAR,-4.95,\n"
        "2024-03-03,Transfer to savings,-500.00,\n"
        '2024-03-04,COSTCO WHOLESALE #123,"-1,204.37",\n'
        "2024-03-05,Coffee Bar,($4.50),\n"
    )
    return path


@pytest.fixture
def sample_json_file(tmp_path: Path) -> Path:
    path = tmp_path / "march.json"
    path.write_text(json.dumps({
        "transactions": [
            {"id": "a1", "description": "Payment from Sun Life", "received": "1250.00",
             "accountId": "chequing", "date": "2024-03-01"},
            {"id": "a2", "description": "Plan monthly fee", "amount": -9.99},
            {"id": "a3", "description": "Broken", "spent": "lots"},
        ]
    }))
    return path


@pytest.fixture
def rules_file(tmp_path: Path) -> Path:
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({
        "rules": [
            {
                "id": "coffee",
                "name": "Coffee",
                "transactionType": "expense",
                "priority": 5,
                "conditions": [{"field": "description", "operator": "contains", "valueString": "coffee"}],
                "actions": [{"actionType": "set_category", "payload": {"categoryId": "dining"}}],
            },
            {
                "id": "big",
                "name": "Big purchases",
                "autoApply": True,
                "priority": 10,
                "conditions": [{"field": "amount", "operator": "greater_than", "valueNumber": 1000}],
                "actions": [{"actionType": "set_memo", "payload": {"memo": "Review"}}],
            },
        ]
    }))
    return path
