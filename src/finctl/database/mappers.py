"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic so the domain entities stay stable
when the database schema changes.
"""

from decimal import Decimal
from typing import Optional

from finctl.domain import entities as domain
from finctl.database.models import (
    BankStatementItem as ORMBankStatementItem,
    Category as ORMCategory,
    Transaction as ORMTransaction,
)
from finctl.utils.amount_parser import to_rate


def _decimal(value, default: Optional[Decimal] = Decimal("0.00")) -> Optional[Decimal]:
    if value is None:
        return default
    return Decimal(value).quantize(Decimal("0.01"))


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        tenant_id=orm_category.tenant_id,
        name=orm_category.name,
        type=domain.CategoryType(orm_category.type),
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        tenant_id=orm_transaction.tenant_id,
        type=domain.TransactionType(orm_transaction.type),
        amount=_decimal(orm_transaction.amount),
        description=orm_transaction.description,
        due_date=orm_transaction.due_date,
        status=domain.TransactionStatus(orm_transaction.status),
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
        interest=_decimal(orm_transaction.interest),
        paid_amount=_decimal(orm_transaction.paid_amount, default=None),
        payment_date=orm_transaction.payment_date,
        payment_method=orm_transaction.payment_method,
        installment_group=orm_transaction.installment_group,
        installment_index=orm_transaction.installment_index,
        installment_total=orm_transaction.installment_total,
        is_reconciled=bool(orm_transaction.is_reconciled),
        customer_id=orm_transaction.customer_id,
        supplier_id=orm_transaction.supplier_id,
        category_id=orm_transaction.category_id,
        category=orm_transaction.category,
        original_amount=_decimal(orm_transaction.original_amount, default=None),
        has_card_fee=bool(orm_transaction.has_card_fee),
        card_fee_rate=to_rate(orm_transaction.card_fee_rate),
        card_fee_amount=_decimal(orm_transaction.card_fee_amount),
    )


def bank_item_to_domain(orm_item: ORMBankStatementItem) -> domain.BankStatementItem:
    """Convert SQLAlchemy BankStatementItem model to domain entity."""
    return domain.BankStatementItem(
        id=orm_item.id,
        tenant_id=orm_item.tenant_id,
        date=orm_item.date,
        amount=_decimal(orm_item.amount),
        description=orm_item.description,
        status=domain.BankItemStatus(orm_item.status),
        transaction_id=orm_item.transaction_id,
        created_at=orm_item.created_at,
    )
