"""Bank statement reconciliation domain service."""

import csv
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from finctl.database.base import Database
from finctl.domain.entities import (
    BankItemStatus,
    BankStatementItem,
    MatchCandidate,
    TransactionStatus,
)
from finctl.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    bank_item_already_matched,
    bank_item_not_found,
    transaction_not_found,
)
from finctl.logging_setup import get_logger
from finctl.utils.amount_parser import parse_amount, to_cents
from finctl.utils.date_parser import parse_date

logger = get_logger("finctl.domain.reconciliation")

CSV_COLUMNS = ("date", "amount", "description")


class ReconciliationService:
    """Service linking imported bank statement items to ledger transactions."""

    def __init__(self, db: Database):
        """Initialize reconciliation service.

        Args:
            db: Database instance
        """
        self.db = db

    def import_item(
        self, tenant_id: str, item_date: date, amount: Decimal, description: str
    ) -> BankStatementItem:
        """Store a bank statement line as a pending item."""
        if not description or not description.strip():
            raise ValidationError("Bank statement items need a description")
        return self.db.insert_bank_item(
            tenant_id,
            {
                "date": item_date,
                "amount": to_cents(amount),
                "description": description.strip(),
                "status": BankItemStatus.PENDING,
            },
        )

    def import_csv(self, tenant_id: str, csv_file_path: str) -> dict[str, Any]:
        """Import bank statement items from a CSV file.

        The file needs ``date``, ``amount`` and ``description`` columns (header
        names are matched case-insensitively). Every readable row is stored as
        a pending item in one unit of work.

        Returns:
            Dict with import statistics:
            - imported: number of items imported
            - errors: list of error messages for skipped rows

        Raises:
            ValidationError: If the file lacks a required column
            FileNotFoundError: If CSV file doesn't exist
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        rows = []
        errors = []
        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            sample = f.read(1024)
            f.seek(0)
            try:
                delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
            except csv.Error:
                delimiter = ","

            reader = csv.DictReader(f, delimiter=delimiter)
            if reader.fieldnames is None:
                raise ValidationError("CSV file has no columns")
            columns = {name.strip().lower(): name for name in reader.fieldnames if name}
            missing = [col for col in CSV_COLUMNS if col not in columns]
            if missing:
                raise ValidationError(f"CSV file missing required columns: {', '.join(missing)}")

            for row_num, row in enumerate(reader, start=2):
                values = {col: (row.get(columns[col]) or "").strip() for col in CSV_COLUMNS}
                if not values["description"]:
                    errors.append(f"Row {row_num}: Missing description")
                    continue
                try:
                    item_date = parse_date(values["date"])
                    amount = parse_amount(values["amount"])
                except ValueError as e:
                    errors.append(f"Row {row_num}: {e}")
                    continue
                rows.append(
                    {
                        "date": item_date,
                        "amount": amount,
                        "description": values["description"],
                        "status": BankItemStatus.PENDING,
                    }
                )

        def insert_all() -> int:
            for data in rows:
                self.db.insert_bank_item(tenant_id, data)
            return len(rows)

        imported = self.db.run_in_transaction(insert_all)
        logger.info(
            "Imported %d bank statement item(s) for tenant %s (%d row(s) skipped)",
            imported,
            tenant_id,
            len(errors),
        )
        return {"imported": imported, "errors": errors}

    def list_items(
        self, tenant_id: str, status: Optional[BankItemStatus] = None
    ) -> list[BankStatementItem]:
        """List a tenant's bank statement items."""
        return self.db.list_bank_items(tenant_id, status)

    def match(self, tenant_id: str, bank_item_id: int, transaction_id: int) -> BankStatementItem:
        """Reconcile a bank item with a transaction.

        Marks the bank item reconciled with a link to the transaction and flags
        the transaction reconciled, in one unit of work: either both rows are
        updated or neither is. Matching the same pair again is a no-op.

        A transaction may be matched by several bank items, for a payment
        that arrived in more than one deposit. Each bank item links to at
        most one transaction.

        Raises:
            NotFoundError: If either row does not exist for the tenant
            ConflictError: If the bank item is reconciled with another transaction
        """

        def apply() -> BankStatementItem:
            item = self.db.get_bank_item(tenant_id, bank_item_id)
            if item is None:
                raise NotFoundError(bank_item_not_found(tenant_id, bank_item_id))
            txn = self.db.get_transaction(tenant_id, transaction_id)
            if txn is None:
                raise NotFoundError(transaction_not_found(tenant_id, transaction_id))

            if item.status == BankItemStatus.RECONCILED:
                if item.transaction_id == transaction_id and txn.is_reconciled:
                    return item
                if item.transaction_id != transaction_id:
                    raise ConflictError(bank_item_already_matched(bank_item_id, item.transaction_id))

            updated = self.db.update_bank_item(
                tenant_id,
                bank_item_id,
                {"status": BankItemStatus.RECONCILED, "transaction_id": transaction_id},
            )
            self.db.update_transaction(tenant_id, transaction_id, {"is_reconciled": True})
            return updated

        result = self.db.run_in_transaction(apply)
        logger.info(
            "Bank item %s reconciled with transaction %s for tenant %s",
            bank_item_id,
            transaction_id,
            tenant_id,
        )
        return result

    def suggest_matches(
        self, tenant_id: str, bank_item_id: int, window_days: int = 5
    ) -> list[MatchCandidate]:
        """Transactions that could settle a bank item.

        A candidate is unreconciled, not cancelled, has an amount (or paid
        amount plus interest) equal to the absolute item amount, and has a due
        or payment date within ``window_days`` of the item date. Closest dates
        come first.
        """
        item = self.db.get_bank_item(tenant_id, bank_item_id)
        if item is None:
            raise NotFoundError(bank_item_not_found(tenant_id, bank_item_id))

        target = abs(item.amount)
        candidates = []
        for txn in self.db.list_transactions(tenant_id):
            if txn.is_reconciled or txn.status == TransactionStatus.CANCELLED:
                continue
            amounts = {to_cents(txn.amount)}
            if txn.paid_amount is not None:
                amounts.add(to_cents(txn.paid_amount + txn.interest))
            if target not in amounts:
                continue
            dates = [d for d in (txn.due_date, txn.payment_date and txn.payment_date.date()) if d]
            if not dates:
                continue
            days_apart = min(abs((d - item.date).days) for d in dates)
            if days_apart <= window_days:
                candidates.append(MatchCandidate(transaction=txn, days_apart=days_apart))

        candidates.sort(key=lambda c: (c.days_apart, c.transaction.id))
        return candidates

    def clear(self, tenant_id: str) -> int:
        """Delete every bank statement item of a tenant.

        Transactions keep their reconciled flag; they are not reverted.

        Returns:
            Number of deleted items
        """
        count = self.db.delete_bank_items(tenant_id)
        logger.info("Cleared %d bank statement item(s) for tenant %s", count, tenant_id)
        return count
