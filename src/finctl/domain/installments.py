"""Installment grouping domain service.

Installment groups are never stored. They are derived on every read from the
flat transaction rows of one tenant: rows sharing an ``installment_group`` key
form a group, and rows without one are grouped by their description with the
trailing ``(n/total)`` marker removed.
"""

import re
from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from finctl.database.base import Database
from finctl.domain.entities import (
    InstallmentGroup,
    InstallmentView,
    SettlementTotals,
    Transaction,
    TransactionFilters,
    TransactionStatus,
)
from finctl.logging_setup import get_logger
from finctl.utils.amount_parser import ZERO, add_cents, sum_cents
from finctl.utils.date_parser import add_months

logger = get_logger("finctl.domain.installments")

INSTALLMENT_SUFFIX = re.compile(r"\s*\((\d+)/(\d+)\)\s*$")


def strip_installment_suffix(text: Optional[str]) -> str:
    """Remove a trailing "(n/total)" marker and surrounding whitespace."""
    return INSTALLMENT_SUFFIX.sub("", text or "").strip()


def resolve_group_key(txn: Transaction) -> str:
    """Return the key that decides which group a transaction belongs to."""
    if txn.installment_group:
        return txn.installment_group
    base = strip_installment_suffix(txn.description)
    return base or f"txn-{txn.id}"


def installment_position(txn: Transaction) -> Optional[int]:
    """Installment index, falling back to the "(n/total)" description marker."""
    if txn.installment_index is not None:
        return txn.installment_index
    match = INSTALLMENT_SUFFIX.search(txn.description or "")
    if match:
        return int(match.group(1))
    return None


def effective_date(txn: Transaction, today: Optional[date] = None) -> date:
    """Due date, else payment date, else creation date, else today."""
    if isinstance(txn.due_date, date):
        return txn.due_date
    if isinstance(txn.payment_date, datetime):
        return txn.payment_date.date()
    if isinstance(txn.created_at, datetime):
        return txn.created_at.date()
    return today or date.today()


def _member_sort_key(txn: Transaction, today: date) -> tuple[int, date, int]:
    return (installment_position(txn) or 0, effective_date(txn, today), txn.id)


def _naive(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.min
    return value.replace(tzinfo=None)


def _remaining(txn: Transaction) -> Decimal:
    if txn.status == TransactionStatus.PENDING:
        return txn.amount
    if txn.status == TransactionStatus.PARTIAL:
        return max(txn.amount - (txn.paid_amount or ZERO), ZERO)
    return ZERO


def build_group(key: str, members: Sequence[Transaction], today: Optional[date] = None) -> InstallmentGroup:
    """Build one group from its members."""
    today = today or date.today()
    ordered = sorted(members, key=lambda txn: _member_sort_key(txn, today))

    diagnostics = []
    for txn in ordered:
        if txn.due_date is None:
            diagnostics.append(f"transaction {txn.id} has no due date")

    dates = [effective_date(txn, today) for txn in ordered]
    base_date = min(dates)
    same_day = all(d == base_date for d in dates)
    same_month = all((d.year, d.month) == (base_date.year, base_date.month) for d in dates)
    offset_dates = same_day or same_month

    views = []
    for ordinal, (txn, stored) in enumerate(zip(ordered, dates), start=1):
        if offset_dates:
            position = installment_position(txn) or ordinal
            shown = add_months(base_date, position - 1)
        else:
            shown = stored
        views.append(InstallmentView(transaction=txn, display_due_date=shown))

    remaining = ZERO
    for txn in ordered:
        remaining = add_cents(remaining, _remaining(txn))

    return InstallmentGroup(
        key=key,
        description=strip_installment_suffix(ordered[0].description) or key,
        installments=tuple(views),
        total=sum_cents(txn.amount for txn in ordered),
        interest_total=sum_cents(txn.interest for txn in ordered),
        remaining=remaining,
        is_paid=all(txn.status == TransactionStatus.PAID for txn in ordered),
        base_date=base_date,
        offset_dates=offset_dates,
        diagnostics=tuple(diagnostics),
    )


def group_transactions(
    transactions: Sequence[Transaction], today: Optional[date] = None
) -> list[InstallmentGroup]:
    """Partition transactions into installment groups.

    Every transaction lands in exactly one group. Groups are ordered newest
    first by base date, then by creation time, then by first member id.
    """
    today = today or date.today()
    buckets: "OrderedDict[str, list[Transaction]]" = OrderedDict()
    for txn in transactions:
        buckets.setdefault(resolve_group_key(txn), []).append(txn)

    groups = [build_group(key, members, today) for key, members in buckets.items()]
    groups.sort(
        key=lambda group: (
            group.base_date,
            _naive(group.installments[0].transaction.created_at),
            group.installments[0].transaction.id,
        ),
        reverse=True,
    )
    return groups


def settlement_totals(transactions: Sequence[Transaction]) -> SettlementTotals:
    """Sum what has been received and what is still open."""
    received = ZERO
    pending = ZERO
    for txn in transactions:
        if txn.status == TransactionStatus.PAID:
            received = add_cents(received, txn.amount + txn.interest)
        elif txn.status == TransactionStatus.PARTIAL:
            received = add_cents(received, (txn.paid_amount or ZERO) + txn.interest)
            pending = add_cents(pending, txn.amount - (txn.paid_amount or ZERO))
        elif txn.status == TransactionStatus.PENDING:
            pending = add_cents(pending, txn.amount)
    return SettlementTotals(received=received, pending=pending)


class InstallmentGrouper:
    """Service that reads a tenant's ledger and groups it."""

    def __init__(self, db: Database):
        """Initialize installment grouper.

        Args:
            db: Database instance
        """
        self.db = db

    def groups_for_tenant(
        self, tenant_id: str, filters: Optional[TransactionFilters] = None
    ) -> list[InstallmentGroup]:
        """Group a tenant's transactions, reading the store fresh."""
        transactions = self.db.list_transactions(tenant_id, filters)
        groups = group_transactions(transactions)
        logger.debug(
            "Grouped %d transactions into %d groups for tenant %s",
            len(transactions),
            len(groups),
            tenant_id,
        )
        return groups
