"""Payment state machine for ledger transactions.

States and transitions::

    pending --confirm--> partial | paid
    partial --confirm--> partial | paid
    paid    --confirm--> partial | paid      (re-confirmation overwrites)
    pending | partial --void--> cancelled
    partial | paid | cancelled --cancel payment--> pending

Cancelling a payment is the only transition that clears payment fields.
This service is the only writer of ``paid_amount``, ``interest``,
``payment_date`` and the card fee amount. Reconciled transactions are frozen:
every transition on them fails with ``ConflictError``.

Concurrent confirmations of the same transaction are not serialized; the last
write wins.
"""

from datetime import datetime
from decimal import Decimal

from finctl.database.base import Database
from finctl.domain.entities import (
    PaymentConfirmation,
    TermsEdit,
    Transaction,
    TransactionStatus,
)
from finctl.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    transaction_cancelled,
    transaction_not_found,
    transaction_reconciled,
)
from finctl.logging_setup import get_logger
from finctl.utils.amount_parser import ZERO, to_cents, to_rate

logger = get_logger("finctl.domain.payment")


def resolve_payment_status(amount: Decimal, paid_amount: Decimal, interest: Decimal) -> TransactionStatus:
    """Status implied by a recorded payment."""
    total_paid = to_cents(to_cents(paid_amount) + to_cents(interest))
    if total_paid >= to_cents(amount):
        return TransactionStatus.PAID
    return TransactionStatus.PARTIAL


def card_fee_amount(paid_amount: Decimal, rate: Decimal) -> Decimal:
    """Informational card fee: paid_amount x rate / 100."""
    return to_cents(to_cents(paid_amount) * rate / 100)


class PaymentService:
    """Service applying payment transitions to single transactions."""

    def __init__(self, db: Database):
        """Initialize payment service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require(self, tenant_id: str, transaction_id: int) -> Transaction:
        txn = self.db.get_transaction(tenant_id, transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(tenant_id, transaction_id))
        return txn

    def confirm_payment(
        self, tenant_id: str, transaction_id: int, payment: PaymentConfirmation
    ) -> Transaction:
        """Record a payment against a transaction.

        The status becomes ``paid`` when paid amount plus interest covers the
        amount, otherwise ``partial``. Other installments of the same group
        are not touched.

        Args:
            tenant_id: Tenant ID
            transaction_id: Transaction ID
            payment: Payment details

        Returns:
            The updated transaction

        Raises:
            NotFoundError: If the transaction does not exist for the tenant
            ValidationError: If the amounts are invalid
            ConflictError: If the transaction is cancelled or reconciled
        """
        paid_amount = to_cents(payment.paid_amount)
        interest = to_cents(payment.interest)
        if paid_amount < 0:
            raise ValidationError("Paid amount cannot be negative")
        if interest < 0:
            raise ValidationError("Interest cannot be negative")
        if paid_amount + interest <= 0:
            raise ValidationError("Paid amount plus interest must be greater than zero")
        if payment.has_card_fee and payment.card_fee_rate < 0:
            raise ValidationError("Card fee rate cannot be negative")

        txn = self._require(tenant_id, transaction_id)
        if txn.status == TransactionStatus.CANCELLED:
            raise ConflictError(transaction_cancelled(transaction_id, "confirm payment for"))
        if txn.is_reconciled:
            raise ConflictError(transaction_reconciled(transaction_id, "confirm payment for"))

        status = resolve_payment_status(txn.amount, paid_amount, interest)
        rate = to_rate(payment.card_fee_rate) if payment.has_card_fee else ZERO
        patch = {
            "status": status,
            "paid_amount": paid_amount,
            "interest": interest,
            "payment_date": payment.payment_date or datetime.now(),
            "has_card_fee": payment.has_card_fee,
            "card_fee_rate": rate,
            "card_fee_amount": card_fee_amount(paid_amount, rate),
        }
        if payment.payment_method is not None:
            patch["payment_method"] = payment.payment_method

        updated = self.db.update_transaction(tenant_id, transaction_id, patch)
        logger.info(
            "Transaction %s for tenant %s: %s -> %s (paid %s, interest %s)",
            transaction_id,
            tenant_id,
            txn.status.value,
            status.value,
            paid_amount,
            interest,
        )
        return updated

    def cancel_payment(self, tenant_id: str, transaction_id: int) -> Transaction:
        """Undo a recorded payment and return the transaction to pending.

        Raises:
            NotFoundError: If the transaction does not exist for the tenant
            ConflictError: If the transaction is reconciled
        """
        txn = self._require(tenant_id, transaction_id)
        if txn.is_reconciled:
            raise ConflictError(transaction_reconciled(transaction_id, "cancel the payment of"))

        updated = self.db.update_transaction(
            tenant_id,
            transaction_id,
            {
                "status": TransactionStatus.PENDING,
                "paid_amount": None,
                "payment_date": None,
                "interest": ZERO,
                "card_fee_amount": ZERO,
            },
        )
        logger.info(
            "Transaction %s for tenant %s: payment cancelled (%s -> pending)",
            transaction_id,
            tenant_id,
            txn.status.value,
        )
        return updated

    def void_transaction(self, tenant_id: str, transaction_id: int) -> Transaction:
        """Mark an unpaid or partially paid transaction as cancelled.

        Raises:
            NotFoundError: If the transaction does not exist for the tenant
            ConflictError: If it is paid, already cancelled or reconciled
        """
        txn = self._require(tenant_id, transaction_id)
        if txn.is_reconciled:
            raise ConflictError(transaction_reconciled(transaction_id, "void"))
        if txn.status == TransactionStatus.CANCELLED:
            raise ConflictError(transaction_cancelled(transaction_id, "void"))
        if txn.status == TransactionStatus.PAID:
            raise ConflictError(
                f"Cannot void transaction {transaction_id}: it is paid; cancel the payment first"
            )

        updated = self.db.update_transaction(
            tenant_id, transaction_id, {"status": TransactionStatus.CANCELLED}
        )
        logger.info("Transaction %s for tenant %s voided", transaction_id, tenant_id)
        return updated

    def edit_terms(self, tenant_id: str, transaction_id: int, terms: TermsEdit) -> Transaction:
        """Change the amount and/or due date of an installment.

        The amount before the first edit is kept as ``original_amount``;
        later edits leave it alone. The status never changes.

        Raises:
            NotFoundError: If the transaction does not exist for the tenant
            ValidationError: If nothing is changed or the amount is not positive
            ConflictError: If the transaction is cancelled or reconciled
        """
        if terms.amount is None and terms.due_date is None:
            raise ValidationError("Nothing to change: provide an amount or a due date")
        new_amount = None
        if terms.amount is not None:
            new_amount = to_cents(terms.amount)
            if new_amount <= 0:
                raise ValidationError("Amount must be greater than zero")

        txn = self._require(tenant_id, transaction_id)
        if txn.status == TransactionStatus.CANCELLED:
            raise ConflictError(transaction_cancelled(transaction_id, "edit"))
        if txn.is_reconciled:
            raise ConflictError(transaction_reconciled(transaction_id, "edit"))

        patch = {}
        if new_amount is not None:
            patch["amount"] = new_amount
            if txn.original_amount is None:
                patch["original_amount"] = txn.amount
        if terms.due_date is not None:
            patch["due_date"] = terms.due_date

        updated = self.db.update_transaction(tenant_id, transaction_id, patch)
        logger.info("Transaction %s for tenant %s: terms edited", transaction_id, tenant_id)
        return updated
