"""Transaction domain service."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from finctl.database.base import Database
from finctl.domain.entities import (
    DueDateUpdate,
    EntryRequest,
    Transaction,
    TransactionFilters,
    TransactionStatus,
    TransactionType,
)
from finctl.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_not_found,
    installment_group_not_found,
    transaction_not_found,
    transaction_reconciled,
)
from finctl.domain.installments import effective_date
from finctl.logging_setup import get_logger
from finctl.utils.amount_parser import split_amount, to_cents, to_rate
from finctl.utils.date_parser import add_months

logger = get_logger("finctl.domain.transaction")

DEFAULT_DESCRIPTIONS = {
    TransactionType.SALE: "Sale",
    TransactionType.PURCHASE: "Purchase",
}


def compute_installment_dates(
    entry_date: date, count: int, custom_due_dates: Sequence[date] = ()
) -> list[date]:
    """Due dates for count installments.

    Without custom dates, installment i falls i months after entry_date.
    Custom dates that all sit in one calendar month are spread monthly from
    the first one; otherwise each custom date is used as given.
    """
    if not custom_due_dates:
        return [add_months(entry_date, i) for i in range(count)]

    first = custom_due_dates[0]
    same_month = all((d.year, d.month) == (first.year, first.month) for d in custom_due_dates)
    if same_month:
        return [add_months(first, i) for i in range(count)]
    return [
        custom_due_dates[i] if i < len(custom_due_dates) else entry_date
        for i in range(count)
    ]


class TransactionService:
    """Service for recording and maintaining ledger transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_entry(self, tenant_id: str, request: EntryRequest) -> list[Transaction]:
        """Record a sale or purchase, split into installments.

        All installment rows share one generated group key and are written in
        a single unit of work.

        Args:
            tenant_id: Tenant the entry belongs to
            request: Entry details

        Returns:
            The created transactions ordered by installment index

        Raises:
            ValidationError: If the amount, count or type is invalid
            NotFoundError: If the category does not exist for the tenant
        """
        if request.type not in DEFAULT_DESCRIPTIONS:
            raise ValidationError(
                f"Entries must be sales or purchases, got '{request.type.value}'"
            )
        total = to_cents(request.total_amount)
        if total <= 0:
            raise ValidationError("Total amount must be greater than zero")
        count = len(request.custom_due_dates) or request.installment_count
        if count < 1:
            raise ValidationError("Installment count must be at least 1")
        if request.card_fee_rate < 0:
            raise ValidationError("Card fee rate cannot be negative")

        category_name = None
        if request.category_id is not None:
            category = self.db.get_category(tenant_id, request.category_id)
            if category is None:
                raise NotFoundError(category_not_found(tenant_id, request.category_id))
            category_name = category.name

        amounts = split_amount(total, count)
        due_dates = compute_installment_dates(request.entry_date, count, request.custom_due_dates)
        base_description = request.description or DEFAULT_DESCRIPTIONS[request.type]
        group_key = f"{request.type.value}-{uuid.uuid4().hex[:12]}"
        card_fee_rate = to_rate(request.card_fee_rate) if request.has_card_fee else Decimal("0.00")

        def insert_all() -> list[Transaction]:
            created = []
            for index, (amount, due_date) in enumerate(zip(amounts, due_dates), start=1):
                description = (
                    f"{base_description} ({index}/{count})" if count > 1 else base_description
                )
                data = {
                    "type": request.type,
                    "amount": amount,
                    "description": description,
                    "due_date": due_date,
                    "status": TransactionStatus.PENDING,
                    "customer_id": request.customer_id,
                    "supplier_id": request.supplier_id,
                    "category_id": request.category_id,
                    "category": category_name,
                    "payment_method": request.payment_method,
                    "installment_group": group_key,
                    "installment_index": index,
                    "installment_total": count,
                    "has_card_fee": request.has_card_fee,
                    "card_fee_rate": card_fee_rate,
                }
                if request.paid:
                    data.update(
                        status=TransactionStatus.PAID,
                        paid_amount=amount,
                        payment_date=datetime(due_date.year, due_date.month, due_date.day, 12),
                        card_fee_amount=to_cents(amount * card_fee_rate / 100),
                    )
                created.append(self.db.insert_transaction(tenant_id, data))
            return created

        created = self.db.run_in_transaction(insert_all)
        logger.info(
            "Recorded %s of %s in %d installment(s) as group %s for tenant %s",
            request.type.value,
            total,
            count,
            group_key,
            tenant_id,
        )
        return created

    def get_transaction(self, tenant_id: str, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID.

        Args:
            tenant_id: Tenant ID
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(tenant_id, transaction_id)

    def require_transaction(self, tenant_id: str, transaction_id: int) -> Transaction:
        """Get transaction by ID or raise NotFoundError."""
        txn = self.db.get_transaction(tenant_id, transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(tenant_id, transaction_id))
        return txn

    def list_transactions(
        self, tenant_id: str, filters: Optional[TransactionFilters] = None
    ) -> list[Transaction]:
        """List a tenant's transactions with filters."""
        return self.db.list_transactions(tenant_id, filters)

    def delete_transaction(self, tenant_id: str, transaction_id: int) -> None:
        """Delete a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ConflictError: If the transaction is reconciled
        """
        txn = self.require_transaction(tenant_id, transaction_id)
        if txn.is_reconciled:
            raise ConflictError(transaction_reconciled(transaction_id, "delete"))
        self.db.delete_transaction(tenant_id, transaction_id)
        logger.info("Deleted transaction %s for tenant %s", transaction_id, tenant_id)

    def reschedule_group(
        self, tenant_id: str, group_key: str, updates: Sequence[DueDateUpdate]
    ) -> list[Transaction]:
        """Change due dates of several installments in one unit of work.

        Raises:
            NotFoundError: If any transaction is missing or outside the group;
                no row is changed in that case
        """
        if not updates:
            raise ValidationError("No due dates to update")

        def apply() -> list[Transaction]:
            results = []
            for update in updates:
                txn = self.db.get_transaction(tenant_id, update.transaction_id)
                if txn is None or txn.installment_group != group_key:
                    raise NotFoundError(
                        f"Transaction {update.transaction_id} is not part of "
                        f"installment group '{group_key}'"
                    )
                results.append(
                    self.db.update_transaction(
                        tenant_id, update.transaction_id, {"due_date": update.due_date}
                    )
                )
            return results

        results = self.db.run_in_transaction(apply)
        logger.info(
            "Rescheduled %d installment(s) of group %s for tenant %s",
            len(results),
            group_key,
            tenant_id,
        )
        return results

    def repair_group_dates(self, tenant_id: str, group_key: str) -> list[Transaction]:
        """Spread installments that all share one due date over consecutive months.

        Groups whose members already have distinct dates are left unchanged.

        Returns:
            The transactions whose due date was changed
        """
        members = self.db.list_transactions(
            tenant_id, TransactionFilters(installment_group=group_key)
        )
        if not members:
            raise NotFoundError(installment_group_not_found(tenant_id, group_key))
        if len(members) < 2:
            return []

        dates = {txn.due_date for txn in members if txn.due_date is not None}
        if len(dates) > 1:
            return []

        ordered = sorted(members, key=lambda txn: (txn.installment_index or 0, txn.id))
        base_date = effective_date(ordered[0])
        updates = [
            DueDateUpdate(
                transaction_id=txn.id,
                due_date=add_months(base_date, (txn.installment_index or position) - 1),
            )
            for position, txn in enumerate(ordered, start=1)
        ]
        return self.reschedule_group(tenant_id, group_key, updates)
