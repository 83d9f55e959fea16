"""DRE (income statement) reporting.

``DREReporter`` is a pure function of the transactions and categories it is
given: it never touches the store and never raises for missing or malformed
data. Anomalies are returned in ``DREReport.diagnostics``. ``DREService`` is
the thin store-reading wrapper used by the command line.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional, Sequence

from finctl.database.base import Database
from finctl.domain.entities import (
    Category,
    DREReport,
    ExpenseBucket,
    MonthlyComparison,
    MonthlyResult,
    PaymentMethodSummary,
    Transaction,
    TransactionStatus,
)
from finctl.domain.errors import ValidationError
from finctl.logging_setup import get_logger
from finctl.utils.amount_parser import ZERO, add_cents, percent, to_cents
from finctl.utils.date_parser import add_months, month_start

logger = get_logger("finctl.domain.dre")

UNCATEGORIZED = "Uncategorized"
UNSPECIFIED_METHOD = "unspecified"

# Evaluated in order; the first matching rule wins.
DEFAULT_EXPENSE_RULES: tuple[tuple[ExpenseBucket, tuple[str, ...]], ...] = (
    (
        ExpenseBucket.DIRECT_COST,
        (
            "cost", "purchase", "supplier", "merchandise", "cogs",
            "custo", "compra", "fornecedor", "mercadoria", "cmv",
        ),
    ),
    (
        ExpenseBucket.SELLING,
        (
            "sale", "commission", "advertising", "marketing",
            "venda", "comiss", "publicidade", "propaganda",
        ),
    ),
    (
        ExpenseBucket.ADMINISTRATIVE,
        (
            "admin", "salary", "salaries", "payroll", "rent", "phone", "internet", "utilities",
            "salário", "salario", "folha", "aluguel", "telefone", "água", "agua", "luz", "energia",
        ),
    ),
)

DEDUCTION_EXEMPT_CATEGORIES = frozenset({"services", "serviços", "servicos"})

Classifier = Callable[[str], ExpenseBucket]


class KeywordClassifier:
    """Classify an expense category name by case-insensitive substring rules."""

    def __init__(
        self,
        rules: Sequence[tuple[ExpenseBucket, Sequence[str]]] = DEFAULT_EXPENSE_RULES,
        default: ExpenseBucket = ExpenseBucket.OTHER,
    ):
        self.rules = tuple((bucket, tuple(k.lower() for k in keywords)) for bucket, keywords in rules)
        self.default = default

    def classify(self, category_name: str) -> ExpenseBucket:
        name = (category_name or "").lower()
        for bucket, keywords in self.rules:
            if any(keyword in name for keyword in keywords):
                return bucket
        return self.default

    __call__ = classify


def _safe_amount(value, txn_id: int, diagnostics: list[str]) -> Decimal:
    try:
        return abs(to_cents(value))
    except (InvalidOperation, TypeError, ValueError):
        diagnostics.append(f"transaction {txn_id} has an unreadable amount; counted as 0.00")
        return ZERO


class DREReporter:
    """Compute an income statement from categorized transactions."""

    def __init__(
        self,
        classifier: Optional[Classifier] = None,
        deduction_rate: Decimal = Decimal("0.08"),
        deduction_cap: Decimal = Decimal("0.15"),
        tax_rate: Decimal = Decimal("0.27"),
        deduction_exempt: Iterable[str] = DEDUCTION_EXEMPT_CATEGORIES,
    ):
        self.classifier = classifier or KeywordClassifier()
        self.deduction_rate = deduction_rate
        self.deduction_cap = deduction_cap
        self.tax_rate = tax_rate
        self.deduction_exempt = frozenset(name.lower() for name in deduction_exempt)

    def resolve_category_name(
        self,
        txn: Transaction,
        category_names: dict[int, str],
        diagnostics: list[str],
    ) -> str:
        """Category name from metadata, then the raw field, then Uncategorized."""
        if txn.category_id is not None:
            name = category_names.get(txn.category_id)
            if name:
                return name
            diagnostics.append(
                f"transaction {txn.id} references unknown category {txn.category_id}"
            )
        if txn.category and txn.category.strip():
            return txn.category.strip()
        return UNCATEGORIZED

    def build(
        self, transactions: Sequence[Transaction], categories: Sequence[Category] = ()
    ) -> DREReport:
        """Build the report. Empty input yields an all-zero report."""
        diagnostics: list[str] = []
        category_names = {cat.id: cat.name for cat in categories}

        gross_revenue = ZERO
        deductions = ZERO
        buckets = {bucket: ZERO for bucket in ExpenseBucket}
        revenue_by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
        expenses_by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
        methods: dict[str, dict] = defaultdict(
            lambda: {"income": ZERO, "expense": ZERO, "count": 0}
        )
        skipped: dict[str, int] = defaultdict(int)
        counted = 0

        for txn in transactions:
            if txn.status == TransactionStatus.CANCELLED:
                skipped["cancelled"] += 1
                continue
            if not (txn.type.is_income or txn.type.is_expense):
                skipped[txn.type.value] += 1
                continue

            counted += 1
            name = self.resolve_category_name(txn, category_names, diagnostics)
            amount = _safe_amount(txn.amount, txn.id, diagnostics)
            method = methods[txn.payment_method or UNSPECIFIED_METHOD]
            method["count"] += 1

            if txn.type.is_income:
                interest = _safe_amount(txn.interest, txn.id, diagnostics)
                revenue = add_cents(amount, interest)
                gross_revenue = add_cents(gross_revenue, revenue)
                revenue_by_category[name] = add_cents(revenue_by_category[name], revenue)
                method["income"] = add_cents(method["income"], revenue)
                if name.lower() not in self.deduction_exempt:
                    deductions = add_cents(deductions, amount * self.deduction_rate)
            else:
                bucket = self.classifier(name)
                buckets[bucket] = add_cents(buckets[bucket], amount)
                expenses_by_category[name] = add_cents(expenses_by_category[name], amount)
                method["expense"] = add_cents(method["expense"], amount)

        for kind, count in sorted(skipped.items()):
            diagnostics.append(f"skipped {count} {kind} transaction(s)")

        deductions = min(deductions, to_cents(gross_revenue * self.deduction_cap))
        net_revenue = to_cents(gross_revenue - deductions)
        direct_costs = buckets[ExpenseBucket.DIRECT_COST]
        gross_profit = to_cents(net_revenue - direct_costs)
        selling = buckets[ExpenseBucket.SELLING]
        admin = buckets[ExpenseBucket.ADMINISTRATIVE]
        other = buckets[ExpenseBucket.OTHER]
        operating_expenses = add_cents(add_cents(selling, admin), other)
        operating_result = to_cents(gross_profit - operating_expenses)
        taxes = to_cents(operating_result * self.tax_rate) if operating_result > 0 else ZERO
        net_result = to_cents(operating_result - taxes)

        for message in diagnostics:
            logger.debug("DRE: %s", message)

        return DREReport(
            gross_revenue=gross_revenue,
            deductions=deductions,
            net_revenue=net_revenue,
            direct_costs=direct_costs,
            gross_profit=gross_profit,
            gross_margin=percent(gross_profit, net_revenue),
            selling_expenses=selling,
            admin_expenses=admin,
            other_operating_expenses=other,
            operating_result=operating_result,
            operating_margin=percent(operating_result, net_revenue),
            taxes=taxes,
            net_result=net_result,
            net_margin=percent(net_result, net_revenue),
            revenue_by_category=dict(revenue_by_category),
            expenses_by_category=dict(expenses_by_category),
            payment_methods={
                key: PaymentMethodSummary(
                    income=value["income"], expense=value["expense"], count=value["count"]
                )
                for key, value in methods.items()
            },
            transaction_count=counted,
            diagnostics=tuple(diagnostics),
        )


def competence_date(txn: Transaction) -> Optional[date]:
    """Date a transaction counts for in period reports: payment date, else due date."""
    if txn.payment_date is not None:
        return txn.payment_date.date()
    return txn.due_date


def build_monthly_comparison(
    transactions: Sequence[Transaction], months: int = 12, today: Optional[date] = None
) -> MonthlyComparison:
    """Revenue, expenses and profit for each of the last ``months`` months.

    Revenue is amount plus interest minus the card fee; expenses are amount
    plus interest. Cancelled and undated transactions are ignored.
    """
    if months < 1:
        raise ValidationError("At least one month is required")
    current = month_start(today or date.today())
    keys = [add_months(current, -offset) for offset in range(months - 1, -1, -1)]
    revenue = {key: ZERO for key in keys}
    expenses = {key: ZERO for key in keys}

    for txn in transactions:
        when = competence_date(txn)
        if when is None or txn.status == TransactionStatus.CANCELLED:
            continue
        key = month_start(when)
        if key not in revenue:
            continue
        amount = abs(txn.amount)
        if txn.type.is_income:
            fee = amount * txn.card_fee_rate / 100 if txn.has_card_fee else ZERO
            revenue[key] = add_cents(revenue[key], amount + txn.interest - fee)
        elif txn.type.is_expense:
            expenses[key] = add_cents(expenses[key], amount + txn.interest)

    results = []
    for key in keys:
        profit = to_cents(revenue[key] - expenses[key])
        results.append(
            MonthlyResult(
                month=key,
                revenue=revenue[key],
                expenses=expenses[key],
                profit=profit,
                margin=percent(profit, revenue[key]),
            )
        )

    total_revenue = sum((r.revenue for r in results), ZERO)
    total_expenses = sum((r.expenses for r in results), ZERO)
    total_profit = sum((r.profit for r in results), ZERO)
    profitable = sum(1 for r in results if r.profit > 0)
    return MonthlyComparison(
        months=tuple(results),
        average_revenue=to_cents(total_revenue / months),
        average_expenses=to_cents(total_expenses / months),
        average_profit=to_cents(total_profit / months),
        average_margin=percent(total_profit, total_revenue),
        profitable_months_percent=percent(Decimal(profitable), Decimal(months)),
    )


class DREService:
    """Service reading a tenant's ledger for DRE reports."""

    def __init__(self, db: Database, reporter: Optional[DREReporter] = None):
        """Initialize DRE service.

        Args:
            db: Database instance
            reporter: Reporter to use; defaults to keyword classification
        """
        self.db = db
        self.reporter = reporter or DREReporter()

    def build_report(
        self,
        tenant_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> DREReport:
        """DRE for the transactions whose competence date lies in the period."""
        transactions = [
            txn
            for txn in self.db.list_transactions(tenant_id)
            if _in_period(competence_date(txn), start_date, end_date)
        ]
        categories = self.db.list_categories(tenant_id)
        return self.reporter.build(transactions, categories)

    def monthly_comparison(
        self, tenant_id: str, months: int = 12, today: Optional[date] = None
    ) -> MonthlyComparison:
        """Month-by-month results for a tenant."""
        return build_monthly_comparison(self.db.list_transactions(tenant_id), months, today)


def _in_period(when: Optional[date], start_date: Optional[date], end_date: Optional[date]) -> bool:
    if start_date is None and end_date is None:
        return True
    if when is None:
        return False
    if start_date is not None and when < start_date:
        return False
    if end_date is not None and when > end_date:
        return False
    return True
