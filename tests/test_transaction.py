"""Tests for recording entries and maintaining transactions."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from finctl.domain.entities import (
    DueDateUpdate,
    EntryRequest,
    TransactionFilters,
    TransactionStatus,
    TransactionType,
)
from finctl.domain.errors import ConflictError, NotFoundError, ValidationError
from finctl.domain.transaction import compute_installment_dates

from conftest import OTHER_TENANT, TENANT


def _entry(**overrides):
    fields = dict(
        type=TransactionType.SALE,
        total_amount=Decimal("100.00"),
        entry_date=date(2024, 1, 31),
        installment_count=3,
    )
    fields.update(overrides)
    return EntryRequest(**fields)


class TestComputeInstallmentDates:
    """Tests for installment due date computation."""

    def test_monthly_from_entry_date(self):
        assert compute_installment_dates(date(2024, 1, 31), 3) == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
        ]

    def test_custom_dates_in_one_month_are_spread(self):
        """Custom dates that collapse into one month are spread from the first one."""
        custom = (date(2024, 5, 10), date(2024, 5, 10), date(2024, 5, 20))
        assert compute_installment_dates(date(2024, 1, 1), 3, custom) == [
            date(2024, 5, 10),
            date(2024, 6, 10),
            date(2024, 7, 10),
        ]

    def test_distinct_custom_dates_are_kept(self):
        custom = (date(2024, 5, 10), date(2024, 7, 1))
        assert compute_installment_dates(date(2024, 1, 1), 2, custom) == list(custom)


class TestCreateEntry:
    """Tests for TransactionService.create_entry."""

    def test_splits_total_into_installments(self, transaction_service):
        created = transaction_service.create_entry(TENANT, _entry(description="Consulting"))

        assert [txn.amount for txn in created] == [
            Decimal("33.33"),
            Decimal("33.33"),
            Decimal("33.34"),
        ]
        assert [txn.installment_index for txn in created] == [1, 2, 3]
        assert all(txn.installment_total == 3 for txn in created)
        assert [txn.description for txn in created] == [
            "Consulting (1/3)",
            "Consulting (2/3)",
            "Consulting (3/3)",
        ]
        assert [txn.due_date for txn in created] == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
        ]
        assert all(txn.status is TransactionStatus.PENDING for txn in created)

    def test_installments_share_one_group_key(self, transaction_service):
        created = transaction_service.create_entry(TENANT, _entry())

        keys = {txn.installment_group for txn in created}
        assert len(keys) == 1
        assert keys.pop().startswith("sale-")

    def test_single_entry_has_no_suffix(self, transaction_service):
        created = transaction_service.create_entry(
            TENANT, _entry(type=TransactionType.PURCHASE, installment_count=1, supplier_id="s1")
        )

        assert len(created) == 1
        assert created[0].description == "Purchase"
        assert created[0].supplier_id == "s1"
        assert created[0].installment_group.startswith("purchase-")

    def test_paid_entry(self, transaction_service):
        """Test that paid entries are recorded as settled on their due date."""
        created = transaction_service.create_entry(
            TENANT,
            _entry(
                installment_count=2,
                paid=True,
                payment_method="credit_card",
                has_card_fee=True,
                card_fee_rate=Decimal("3.00"),
            ),
        )

        first = created[0]
        assert first.status is TransactionStatus.PAID
        assert first.paid_amount == Decimal("50.00")
        assert first.payment_date == datetime(2024, 1, 31, 12, 0, 0)
        assert first.card_fee_amount == Decimal("1.50")
        assert first.payment_method == "credit_card"

    def test_category_name_is_copied(self, transaction_service, category_service):
        category = category_service.create_category(TENANT, "Services", "income")

        created = transaction_service.create_entry(
            TENANT, _entry(installment_count=1, category_id=category.id)
        )

        assert created[0].category_id == category.id
        assert created[0].category == "Services"

    def test_unknown_category(self, transaction_service, category_service):
        theirs = category_service.create_category(OTHER_TENANT, "Services", "income")

        with pytest.raises(NotFoundError):
            transaction_service.create_entry(TENANT, _entry(category_id=theirs.id))

        assert transaction_service.list_transactions(TENANT) == []

    @pytest.mark.parametrize(
        "overrides",
        [
            {"total_amount": Decimal("0")},
            {"total_amount": Decimal("-10.00")},
            {"installment_count": 0},
            {"type": TransactionType.REFUND},
            {"card_fee_rate": Decimal("-1")},
        ],
    )
    def test_invalid_entries(self, transaction_service, overrides):
        with pytest.raises(ValidationError):
            transaction_service.create_entry(TENANT, _entry(**overrides))

        assert transaction_service.list_transactions(TENANT) == []


class TestDeleteTransaction:
    """Tests for TransactionService.delete_transaction."""

    def test_delete(self, transaction_service, make_transaction):
        txn = make_transaction()

        transaction_service.delete_transaction(TENANT, txn.id)

        assert transaction_service.get_transaction(TENANT, txn.id) is None

    def test_delete_missing(self, transaction_service):
        with pytest.raises(NotFoundError):
            transaction_service.delete_transaction(TENANT, 404)

    def test_delete_reconciled_is_refused(self, transaction_service, make_transaction):
        txn = make_transaction(is_reconciled=True)

        with pytest.raises(ConflictError):
            transaction_service.delete_transaction(TENANT, txn.id)

        assert transaction_service.get_transaction(TENANT, txn.id) is not None


class TestRescheduleGroup:
    """Tests for batched due date changes."""

    def test_updates_all_members(self, transaction_service, sale_in_three):
        group_key = sale_in_three[0].installment_group
        updates = [
            DueDateUpdate(transaction_id=sale_in_three[0].id, due_date=date(2024, 2, 5)),
            DueDateUpdate(transaction_id=sale_in_three[1].id, due_date=date(2024, 3, 5)),
        ]

        results = transaction_service.reschedule_group(TENANT, group_key, updates)

        assert [txn.due_date for txn in results] == [date(2024, 2, 5), date(2024, 3, 5)]

    def test_foreign_member_aborts_whole_batch(self, transaction_service, sale_in_three, make_transaction):
        """Test that nothing changes when one id is outside the group."""
        group_key = sale_in_three[0].installment_group
        outsider = make_transaction()
        updates = [
            DueDateUpdate(transaction_id=sale_in_three[0].id, due_date=date(2030, 1, 1)),
            DueDateUpdate(transaction_id=outsider.id, due_date=date(2030, 2, 1)),
        ]

        with pytest.raises(NotFoundError):
            transaction_service.reschedule_group(TENANT, group_key, updates)

        assert transaction_service.get_transaction(TENANT, sale_in_three[0].id).due_date == date(2024, 1, 15)
        assert transaction_service.get_transaction(TENANT, outsider.id).due_date == date(2024, 1, 10)

    def test_empty_batch(self, transaction_service):
        with pytest.raises(ValidationError):
            transaction_service.reschedule_group(TENANT, "G1", [])


class TestRepairGroupDates:
    """Tests for re-spreading collapsed installment dates."""

    def test_repairs_collapsed_group(self, transaction_service, make_transaction):
        for index in (1, 2, 3):
            make_transaction(
                installment_group="G1",
                installment_index=index,
                due_date=date(2024, 4, 10),
            )

        changed = transaction_service.repair_group_dates(TENANT, "G1")

        stored = transaction_service.list_transactions(TENANT, TransactionFilters(installment_group="G1"))
        assert len(changed) == 3
        assert sorted(txn.due_date for txn in stored) == [
            date(2024, 4, 10),
            date(2024, 5, 10),
            date(2024, 6, 10),
        ]

    def test_distinct_dates_are_left_alone(self, transaction_service, sale_in_three):
        group_key = sale_in_three[0].installment_group

        assert transaction_service.repair_group_dates(TENANT, group_key) == []

    def test_unknown_group(self, transaction_service):
        with pytest.raises(NotFoundError):
            transaction_service.repair_group_dates(TENANT, "missing")
