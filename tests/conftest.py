"""Shared pytest fixtures for finctl tests."""

import tempfile
import os
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
import pytest

from finctl.database.factories import create_sqlite_database
from finctl.domain.category import CategoryService
from finctl.domain.dre import DREService
from finctl.domain.entities import EntryRequest, TransactionStatus, TransactionType
from finctl.domain.installments import InstallmentGrouper
from finctl.domain.payment import PaymentService
from finctl.domain.reconciliation import ReconciliationService
from finctl.domain.transaction import TransactionService

TENANT = "acme"
OTHER_TENANT = "globex"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep the developer's finctl environment out of the tests."""
    for name in ("FINCTL_DB_PATH", "FINCTL_DATABASE_URL", "FINCTL_TENANT", "FINCTL_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def tenant():
    return TENANT


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def payment_service(temp_db):
    """Create a PaymentService with a temporary database."""
    return PaymentService(temp_db)


@pytest.fixture
def reconciliation_service(temp_db):
    """Create a ReconciliationService with a temporary database."""
    return ReconciliationService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def dre_service(temp_db):
    """Create a DREService with a temporary database."""
    return DREService(temp_db)


@pytest.fixture
def grouper(temp_db):
    """Create an InstallmentGrouper with a temporary database."""
    return InstallmentGrouper(temp_db)


@pytest.fixture
def make_transaction(temp_db):
    """Insert a raw ledger row for TENANT, bypassing entry creation."""

    def _make(tenant_id=TENANT, **fields):
        data = {
            "type": TransactionType.SALE,
            "amount": Decimal("100.00"),
            "description": "Sale",
            "due_date": date(2024, 1, 10),
            "status": TransactionStatus.PENDING,
        }
        data.update(fields)
        return temp_db.insert_transaction(tenant_id, data)

    return _make


@pytest.fixture
def sale_in_three(transaction_service):
    """A 300.00 sale split into three monthly installments."""
    return transaction_service.create_entry(
        TENANT,
        EntryRequest(
            type=TransactionType.SALE,
            total_amount=Decimal("300.00"),
            entry_date=date(2024, 1, 15),
            installment_count=3,
            description="Website project",
            customer_id="cust-1",
        ),
    )


@pytest.fixture
def paid_at():
    return datetime(2024, 1, 16, 12, 0, 0)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
