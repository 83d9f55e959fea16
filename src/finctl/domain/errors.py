"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested tenant-scoped entity does not exist."""


class ConflictError(DomainError):
    """Operation conflicts with the current state of the ledger."""


class PersistenceError(DomainError):
    """The store failed to read or write; the operation was rolled back."""


def transaction_not_found(tenant_id: str, transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found for tenant '{tenant_id}'"


def bank_item_not_found(tenant_id: str, bank_item_id: int) -> str:
    """Return message for missing bank statement item."""
    return f"Bank statement item {bank_item_id} not found for tenant '{tenant_id}'"


def category_not_found(tenant_id: str, category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found for tenant '{tenant_id}'"


def installment_group_not_found(tenant_id: str, group_key: str) -> str:
    """Return message for a group key with no members."""
    return f"Installment group '{group_key}' not found for tenant '{tenant_id}'"


def transaction_reconciled(transaction_id: int, action: str) -> str:
    """Return message when a reconciled transaction blocks an action."""
    return (
        f"Cannot {action} transaction {transaction_id}: it is reconciled "
        "with a bank statement item"
    )


def transaction_cancelled(transaction_id: int, action: str) -> str:
    """Return message when a cancelled transaction blocks an action."""
    return f"Cannot {action} transaction {transaction_id}: it is cancelled"


def bank_item_already_matched(bank_item_id: int, transaction_id: int) -> str:
    """Return message when a bank item is linked to another transaction."""
    return (
        f"Bank statement item {bank_item_id} is already reconciled "
        f"with transaction {transaction_id}"
    )
