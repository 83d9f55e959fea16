"""Domain layer for finctl application."""

_SERVICES = {
    "TransactionService": "finctl.domain.transaction",
    "CategoryService": "finctl.domain.category",
    "InstallmentGrouper": "finctl.domain.installments",
    "PaymentService": "finctl.domain.payment",
    "ReconciliationService": "finctl.domain.reconciliation",
    "DREReporter": "finctl.domain.dre",
    "DREService": "finctl.domain.dre",
    "KeywordClassifier": "finctl.domain.dre",
}

__all__ = list(_SERVICES)


# Import services lazily; the database layer imports domain.entities at load time
def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module
        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
