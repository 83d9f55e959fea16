"""Tests for the payment state machine."""

import pytest
from datetime import datetime
from decimal import Decimal

from finctl.database.factories import create_sqlite_database
from finctl.domain.entities import PaymentConfirmation, TermsEdit, TransactionStatus
from finctl.domain.errors import ConflictError, NotFoundError, ValidationError
from finctl.domain.payment import PaymentService, card_fee_amount, resolve_payment_status

from conftest import OTHER_TENANT, TENANT


class TestResolvePaymentStatus:
    """Tests for the status implied by a payment."""

    @pytest.mark.parametrize(
        "paid,interest,expected",
        [
            ("100.00", "0.00", TransactionStatus.PAID),
            ("120.00", "0.00", TransactionStatus.PAID),
            ("95.00", "5.00", TransactionStatus.PAID),
            ("99.99", "0.00", TransactionStatus.PARTIAL),
            ("0.01", "0.00", TransactionStatus.PARTIAL),
            ("50.00", "49.99", TransactionStatus.PARTIAL),
            ("0.00", "5.00", TransactionStatus.PARTIAL),
            ("0.00", "100.00", TransactionStatus.PAID),
        ],
    )
    def test_status_threshold(self, paid, interest, expected):
        assert resolve_payment_status(Decimal("100.00"), Decimal(paid), Decimal(interest)) is expected

    def test_card_fee_amount(self):
        assert card_fee_amount(Decimal("200.00"), Decimal("2.50")) == Decimal("5.00")
        assert card_fee_amount(Decimal("33.33"), Decimal("3.00")) == Decimal("1.00")


class TestConfirmPayment:
    """Tests for PaymentService.confirm_payment."""

    def test_full_payment(self, payment_service, make_transaction, paid_at):
        txn = make_transaction()

        updated = payment_service.confirm_payment(
            TENANT,
            txn.id,
            PaymentConfirmation(paid_amount=Decimal("100.00"), payment_date=paid_at, payment_method="pix"),
        )

        assert updated.status is TransactionStatus.PAID
        assert updated.paid_amount == Decimal("100.00")
        assert updated.payment_date == paid_at
        assert updated.payment_method == "pix"

    def test_partial_payment_with_interest(self, payment_service, make_transaction, paid_at):
        txn = make_transaction()

        updated = payment_service.confirm_payment(
            TENANT,
            txn.id,
            PaymentConfirmation(paid_amount=Decimal("40.00"), interest=Decimal("2.00"), payment_date=paid_at),
        )

        assert updated.status is TransactionStatus.PARTIAL
        assert updated.interest == Decimal("2.00")
        assert updated.payment_method is None

    def test_interest_completes_payment(self, payment_service, make_transaction):
        txn = make_transaction()

        updated = payment_service.confirm_payment(
            TENANT, txn.id, PaymentConfirmation(paid_amount=Decimal("90.00"), interest=Decimal("10.00"))
        )

        assert updated.status is TransactionStatus.PAID
        assert isinstance(updated.payment_date, datetime)

    def test_card_fee_is_informational(self, payment_service, make_transaction):
        """Test that the card fee is recorded without reducing the paid amount."""
        txn = make_transaction()

        updated = payment_service.confirm_payment(
            TENANT,
            txn.id,
            PaymentConfirmation(
                paid_amount=Decimal("100.00"), has_card_fee=True, card_fee_rate=Decimal("3.5")
            ),
        )

        assert updated.paid_amount == Decimal("100.00")
        assert updated.card_fee_rate == Decimal("3.50")
        assert updated.card_fee_amount == Decimal("3.50")

    def test_fractional_card_fee_rate_is_kept(self, payment_service, make_transaction):
        txn = make_transaction(amount=Decimal("200.00"))

        payment_service.confirm_payment(
            TENANT,
            txn.id,
            PaymentConfirmation(
                paid_amount=Decimal("200.00"), has_card_fee=True, card_fee_rate=Decimal("3.125")
            ),
        )

        stored = payment_service.db.get_transaction(TENANT, txn.id)
        assert stored.card_fee_rate == Decimal("3.125")
        assert stored.card_fee_amount == Decimal("6.25")

    def test_sibling_installments_untouched(self, payment_service, transaction_service, sale_in_three):
        payment_service.confirm_payment(
            TENANT, sale_in_three[0].id, PaymentConfirmation(paid_amount=Decimal("100.00"))
        )

        statuses = [
            transaction_service.get_transaction(TENANT, txn.id).status for txn in sale_in_three
        ]
        assert statuses == [
            TransactionStatus.PAID,
            TransactionStatus.PENDING,
            TransactionStatus.PENDING,
        ]

    def test_reconfirming_overwrites(self, payment_service, make_transaction):
        txn = make_transaction()
        payment_service.confirm_payment(TENANT, txn.id, PaymentConfirmation(paid_amount=Decimal("100.00")))

        updated = payment_service.confirm_payment(
            TENANT, txn.id, PaymentConfirmation(paid_amount=Decimal("60.00"))
        )

        assert updated.status is TransactionStatus.PARTIAL
        assert updated.paid_amount == Decimal("60.00")

    @pytest.mark.parametrize(
        "confirmation",
        [
            PaymentConfirmation(paid_amount=Decimal("0")),
            PaymentConfirmation(paid_amount=Decimal("0.00"), interest=Decimal("0.00")),
            PaymentConfirmation(paid_amount=Decimal("-5.00")),
            PaymentConfirmation(paid_amount=Decimal("-5.00"), interest=Decimal("10.00")),
            PaymentConfirmation(paid_amount=Decimal("10.00"), interest=Decimal("-1.00")),
            PaymentConfirmation(paid_amount=Decimal("10.00"), has_card_fee=True, card_fee_rate=Decimal("-2")),
        ],
    )
    def test_invalid_payment(self, payment_service, make_transaction, confirmation):
        txn = make_transaction()

        with pytest.raises(ValidationError):
            payment_service.confirm_payment(TENANT, txn.id, confirmation)

        assert payment_service.db.get_transaction(TENANT, txn.id).status is TransactionStatus.PENDING

    def test_interest_only_payment_is_partial(self, payment_service, make_transaction):
        txn = make_transaction(amount=Decimal("100.00"))

        updated = payment_service.confirm_payment(
            TENANT, txn.id, PaymentConfirmation(paid_amount=Decimal("0.00"), interest=Decimal("5.00"))
        )

        assert updated.status is TransactionStatus.PARTIAL
        assert updated.paid_amount == Decimal("0.00")
        assert updated.interest == Decimal("5.00")

    def test_cancelled_transaction(self, payment_service, make_transaction):
        txn = make_transaction(status=TransactionStatus.CANCELLED)

        with pytest.raises(ConflictError):
            payment_service.confirm_payment(TENANT, txn.id, PaymentConfirmation(paid_amount=Decimal("1.00")))

    def test_reconciled_transaction(self, payment_service, make_transaction):
        txn = make_transaction(is_reconciled=True)

        with pytest.raises(ConflictError):
            payment_service.confirm_payment(TENANT, txn.id, PaymentConfirmation(paid_amount=Decimal("1.00")))

    def test_concurrent_confirmations_last_write_wins(self, temp_db, make_transaction):
        """Confirmations are not serialized; whichever write lands last is kept."""
        txn = make_transaction()
        other_db = create_sqlite_database(database_path=temp_db.database_path)

        PaymentService(temp_db).confirm_payment(
            TENANT, txn.id, PaymentConfirmation(paid_amount=Decimal("100.00"))
        )
        PaymentService(other_db).confirm_payment(
            TENANT, txn.id, PaymentConfirmation(paid_amount=Decimal("40.00"))
        )

        other_db.disconnect()
        temp_db.disconnect()
        stored = temp_db.get_transaction(TENANT, txn.id)
        assert stored.status is TransactionStatus.PARTIAL
        assert stored.paid_amount == Decimal("40.00")

    def test_other_tenant(self, payment_service, make_transaction):
        txn = make_transaction(tenant_id=OTHER_TENANT)

        with pytest.raises(NotFoundError):
            payment_service.confirm_payment(TENANT, txn.id, PaymentConfirmation(paid_amount=Decimal("1.00")))


class TestCancelPayment:
    """Tests for PaymentService.cancel_payment."""

    def test_cancel_clears_payment_fields(self, payment_service, make_transaction, paid_at):
        txn = make_transaction()
        payment_service.confirm_payment(
            TENANT,
            txn.id,
            PaymentConfirmation(
                paid_amount=Decimal("100.00"),
                interest=Decimal("3.00"),
                payment_date=paid_at,
                has_card_fee=True,
                card_fee_rate=Decimal("2.00"),
            ),
        )

        updated = payment_service.cancel_payment(TENANT, txn.id)

        assert updated.status is TransactionStatus.PENDING
        assert updated.paid_amount is None
        assert updated.payment_date is None
        assert updated.interest == Decimal("0.00")
        assert updated.card_fee_amount == Decimal("0.00")

    @pytest.mark.parametrize(
        "paid,interest",
        [(Decimal("100.00"), Decimal("0.00")), (Decimal("30.00"), Decimal("1.50"))],
    )
    def test_cancel_then_confirm_round_trip(self, payment_service, make_transaction, paid_at, paid, interest):
        """Re-confirming with the original values restores the original state."""
        txn = make_transaction()
        confirmation = PaymentConfirmation(paid_amount=paid, interest=interest, payment_date=paid_at)
        original = payment_service.confirm_payment(TENANT, txn.id, confirmation)

        payment_service.cancel_payment(TENANT, txn.id)
        restored = payment_service.confirm_payment(TENANT, txn.id, confirmation)

        assert restored.status is original.status
        assert restored.paid_amount == original.paid_amount
        assert restored.interest == original.interest
        assert restored.payment_date == original.payment_date

    def test_cancel_reopens_voided_transaction(self, payment_service, make_transaction):
        txn = make_transaction(status=TransactionStatus.CANCELLED)

        assert payment_service.cancel_payment(TENANT, txn.id).status is TransactionStatus.PENDING

    def test_cancel_reconciled_is_blocked(self, payment_service, make_transaction):
        txn = make_transaction(status=TransactionStatus.PAID, paid_amount=Decimal("100.00"), is_reconciled=True)

        with pytest.raises(ConflictError):
            payment_service.cancel_payment(TENANT, txn.id)

        assert payment_service.db.get_transaction(TENANT, txn.id).status is TransactionStatus.PAID


class TestVoidTransaction:
    """Tests for PaymentService.void_transaction."""

    @pytest.mark.parametrize("status", [TransactionStatus.PENDING, TransactionStatus.PARTIAL])
    def test_void_open_transaction(self, payment_service, make_transaction, status):
        txn = make_transaction(status=status)

        assert payment_service.void_transaction(TENANT, txn.id).status is TransactionStatus.CANCELLED

    @pytest.mark.parametrize(
        "fields",
        [
            {"status": TransactionStatus.PAID},
            {"status": TransactionStatus.CANCELLED},
            {"status": TransactionStatus.PENDING, "is_reconciled": True},
        ],
    )
    def test_void_refused(self, payment_service, make_transaction, fields):
        txn = make_transaction(**fields)

        with pytest.raises(ConflictError):
            payment_service.void_transaction(TENANT, txn.id)


class TestEditTerms:
    """Tests for PaymentService.edit_terms."""

    def test_first_edit_records_original_amount(self, payment_service, make_transaction):
        txn = make_transaction(amount=Decimal("100.00"))

        first = payment_service.edit_terms(TENANT, txn.id, TermsEdit(amount=Decimal("120.00")))
        second = payment_service.edit_terms(TENANT, txn.id, TermsEdit(amount=Decimal("130.00")))

        assert first.original_amount == Decimal("100.00")
        assert second.amount == Decimal("130.00")
        assert second.original_amount == Decimal("100.00")

    def test_edit_due_date_keeps_status(self, payment_service, make_transaction):
        txn = make_transaction(status=TransactionStatus.PARTIAL, paid_amount=Decimal("10.00"))

        updated = payment_service.edit_terms(TENANT, txn.id, TermsEdit(due_date=txn.due_date.replace(day=28)))

        assert updated.due_date.day == 28
        assert updated.status is TransactionStatus.PARTIAL
        assert updated.original_amount is None

    @pytest.mark.parametrize("terms", [TermsEdit(), TermsEdit(amount=Decimal("0"))])
    def test_invalid_edit(self, payment_service, make_transaction, terms):
        txn = make_transaction()

        with pytest.raises(ValidationError):
            payment_service.edit_terms(TENANT, txn.id, terms)

    @pytest.mark.parametrize(
        "fields", [{"status": TransactionStatus.CANCELLED}, {"is_reconciled": True}]
    )
    def test_edit_refused(self, payment_service, make_transaction, fields):
        txn = make_transaction(**fields)

        with pytest.raises(ConflictError):
            payment_service.edit_terms(TENANT, txn.id, TermsEdit(amount=Decimal("1.00")))
