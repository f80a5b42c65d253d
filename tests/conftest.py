"""Shared pytest fixtures for taxledger tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from taxledger.database.factories import create_sqlite_store
from taxledger.domain.chart import ChartOfAccountsRegistry
from taxledger.domain.engine import AccountingEngine
from taxledger.domain.entities import RawTransaction, RawTransactionType


@pytest.fixture
def temp_store():
    """Create a temporary snapshot store for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    store.database_path = db_path
    store.connect()
    store.initialize_schema()

    yield store

    # Cleanup
    store.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def registry():
    """Create a chart of accounts with only the standard accounts."""
    return ChartOfAccountsRegistry()


@pytest.fixture
def engine():
    """Create an engine without a snapshot store."""
    return AccountingEngine()


@pytest.fixture
def stored_engine(temp_store):
    """Create an engine that saves to a temporary store."""
    return AccountingEngine(store=temp_store)


@pytest.fixture
def make_transaction():
    """Factory for raw transactions with sensible defaults."""

    def _make(
        id="T1",
        amount="100000",
        description="Sale of goods to Ada",
        category="sales",
        type=RawTransactionType.INCOME,
        txn_date=date(2024, 3, 10),
        **kwargs,
    ):
        return RawTransaction(
            id=id,
            date=txn_date,
            description=description,
            category=category,
            amount=Decimal(amount),
            type=type,
            **kwargs,
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
