"""Abstract database interface.

Every operation is scoped to one tenant: implementations must filter every
read and every write by ``tenant_id``.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, TypeVar

# Import entities directly to avoid circular import through domain/__init__.py
from finctl.domain.entities import (
    BankItemStatus,
    BankStatementItem,
    Category,
    Transaction,
    TransactionFilters,
)

T = TypeVar("T")


class Database(ABC):
    """Abstract database interface for finctl."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def run_in_transaction(self, fn: Callable[[], T]) -> T:
        """Run fn as one all-or-nothing unit of work.

        Writes made by fn are committed together when it returns. If fn
        raises, every write is rolled back and the exception propagates.
        Nested calls join the outermost unit.
        """
        pass

    # Transaction operations
    @abstractmethod
    def list_transactions(
        self, tenant_id: str, filters: Optional[TransactionFilters] = None
    ) -> list[Transaction]:
        """List a tenant's transactions with optional filters."""
        pass

    @abstractmethod
    def get_transaction(self, tenant_id: str, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def insert_transaction(self, tenant_id: str, data: dict[str, Any]) -> Transaction:
        """Insert a transaction built from column values. Returns the stored row."""
        pass

    @abstractmethod
    def update_transaction(
        self, tenant_id: str, transaction_id: int, patch: dict[str, Any]
    ) -> Transaction:
        """Apply column values to a transaction. Returns the updated row.

        Keys present in patch are written even when their value is None.
        """
        pass

    @abstractmethod
    def delete_transaction(self, tenant_id: str, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    # Category operations
    @abstractmethod
    def create_category(self, tenant_id: str, name: str, category_type: str) -> Category:
        """Create a category."""
        pass

    @abstractmethod
    def get_category(self, tenant_id: str, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def list_categories(self, tenant_id: str) -> list[Category]:
        """List a tenant's categories."""
        pass

    # Bank statement operations
    @abstractmethod
    def list_bank_items(
        self, tenant_id: str, status: Optional[BankItemStatus] = None
    ) -> list[BankStatementItem]:
        """List bank statement items, newest first."""
        pass

    @abstractmethod
    def get_bank_item(self, tenant_id: str, bank_item_id: int) -> Optional[BankStatementItem]:
        """Get bank statement item by ID."""
        pass

    @abstractmethod
    def insert_bank_item(self, tenant_id: str, data: dict[str, Any]) -> BankStatementItem:
        """Insert a bank statement item."""
        pass

    @abstractmethod
    def update_bank_item(
        self, tenant_id: str, bank_item_id: int, patch: dict[str, Any]
    ) -> BankStatementItem:
        """Apply column values to a bank statement item."""
        pass

    @abstractmethod
    def delete_bank_items(self, tenant_id: str) -> int:
        """Delete all bank statement items of a tenant. Returns the count."""
        pass
