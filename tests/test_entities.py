"""Tests for domain entities."""

import pytest
from datetime import datetime, date, UTC
from decimal import Decimal

from finctl.domain.entities import (
    Category,
    CategoryType,
    InstallmentGroup,
    InstallmentView,
    Transaction,
    TransactionStatus,
    TransactionType,
)


def _transaction(**overrides):
    fields = dict(
        id=1,
        tenant_id="acme",
        type=TransactionType.SALE,
        amount=Decimal("100.00"),
        description="Sale",
        due_date=date(2024, 1, 15),
        status=TransactionStatus.PENDING,
        created_at=datetime.now(UTC),
    )
    fields.update(overrides)
    return Transaction(**fields)


class TestTransactionType:
    """Tests for TransactionType classification."""

    def test_sale_is_income(self):
        assert TransactionType.SALE.is_income
        assert not TransactionType.SALE.is_expense

    def test_purchase_is_expense(self):
        assert TransactionType.PURCHASE.is_expense
        assert not TransactionType.PURCHASE.is_income

    @pytest.mark.parametrize(
        "txn_type",
        [TransactionType.REFUND, TransactionType.ADJUSTMENT, TransactionType.PAYMENT],
    )
    def test_other_types_are_neither(self, txn_type):
        """Refunds, adjustments and payments are not operational revenue or cost."""
        assert not txn_type.is_income
        assert not txn_type.is_expense

    def test_enum_compares_to_stored_string(self):
        assert TransactionType("sale") is TransactionType.SALE
        assert TransactionStatus.PAID == "paid"


class TestTransaction:
    """Tests for Transaction entity."""

    def test_defaults(self):
        """Test that optional payment fields start empty."""
        txn = _transaction()
        assert txn.interest == Decimal("0.00")
        assert txn.paid_amount is None
        assert txn.payment_date is None
        assert txn.is_reconciled is False
        assert txn.original_amount is None
        assert txn.has_card_fee is False

    def test_transaction_immutability(self):
        """Test that Transaction entities are immutable."""
        txn = _transaction()
        with pytest.raises(Exception):  # dataclass frozen raises FrozenInstanceError
            txn.status = TransactionStatus.PAID

    def test_transaction_equality(self):
        """Test Transaction entity equality."""
        created_at = datetime.now(UTC)
        assert _transaction(created_at=created_at) == _transaction(created_at=created_at)
        assert _transaction(created_at=created_at) != _transaction(id=2, created_at=created_at)


class TestCategory:
    """Tests for Category entity."""

    def test_create_category(self):
        """Test creating a Category entity."""
        category = Category(
            id=1,
            tenant_id="acme",
            name="Services",
            type=CategoryType.INCOME,
            created_at=datetime.now(UTC),
        )
        assert category.name == "Services"
        assert category.type is CategoryType.INCOME


class TestInstallmentGroup:
    """Tests for the derived InstallmentGroup entity."""

    def test_transactions_follow_installment_order(self):
        first = _transaction(id=1)
        second = _transaction(id=2)
        group = InstallmentGroup(
            key="G1",
            description="Sale",
            installments=(
                InstallmentView(transaction=first, display_due_date=date(2024, 1, 15)),
                InstallmentView(transaction=second, display_due_date=date(2024, 2, 15)),
            ),
            total=Decimal("200.00"),
            interest_total=Decimal("0.00"),
            remaining=Decimal("200.00"),
            is_paid=False,
            base_date=date(2024, 1, 15),
            offset_dates=True,
        )
        assert group.transactions == (first, second)
        assert group.diagnostics == ()
