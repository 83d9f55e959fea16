"""Domain model entities for finctl.

These are pure data classes representing business concepts, independent of
database schema. Stored entities (transactions, bank statement items,
categories) are produced by the database mappers; derived entities (groups,
reports) are computed at read time and never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    """Kind of ledger row."""

    SALE = "sale"
    PURCHASE = "purchase"
    REFUND = "refund"
    ADJUSTMENT = "adjustment"
    PAYMENT = "payment"

    @property
    def is_income(self) -> bool:
        return self is TransactionType.SALE

    @property
    def is_expense(self) -> bool:
        return self is TransactionType.PURCHASE


class TransactionStatus(str, Enum):
    """Payment status of a ledger row."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    CANCELLED = "cancelled"


class BankItemStatus(str, Enum):
    """Reconciliation status of a bank statement item."""

    PENDING = "pending"
    RECONCILED = "reconciled"


class CategoryType(str, Enum):
    """Category classification."""

    INCOME = "income"
    EXPENSE = "expense"


class ExpenseBucket(str, Enum):
    """DRE expense line an expense category rolls up into."""

    DIRECT_COST = "direct_cost"
    SELLING = "selling"
    ADMINISTRATIVE = "administrative"
    OTHER = "other"


@dataclass(frozen=True)
class Category:
    """Category domain entity."""

    id: int
    tenant_id: str
    name: str
    type: CategoryType
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Ledger transaction domain entity."""

    id: int
    tenant_id: str
    type: TransactionType
    amount: Decimal
    description: Optional[str]
    due_date: Optional[date]
    status: TransactionStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    interest: Decimal = Decimal("0.00")
    paid_amount: Optional[Decimal] = None
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    installment_group: Optional[str] = None
    installment_index: Optional[int] = None
    installment_total: Optional[int] = None
    is_reconciled: bool = False
    customer_id: Optional[str] = None
    supplier_id: Optional[str] = None
    category_id: Optional[int] = None
    category: Optional[str] = None
    original_amount: Optional[Decimal] = None
    has_card_fee: bool = False
    card_fee_rate: Decimal = Decimal("0.00")
    card_fee_amount: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class BankStatementItem:
    """Externally imported bank statement line."""

    id: int
    tenant_id: str
    date: date
    amount: Decimal
    description: str
    status: BankItemStatus
    transaction_id: Optional[int]
    created_at: datetime


# Request types. Each carries only the fields its operation may change.


@dataclass(frozen=True)
class TransactionFilters:
    """Optional filters for listing a tenant's transactions."""

    customer_id: Optional[str] = None
    supplier_id: Optional[str] = None
    type: Optional[TransactionType] = None
    status: Optional[TransactionStatus] = None
    installment_group: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class EntryRequest:
    """A sale or purchase to be recorded, optionally split into installments."""

    type: TransactionType
    total_amount: Decimal
    entry_date: date
    installment_count: int = 1
    description: Optional[str] = None
    customer_id: Optional[str] = None
    supplier_id: Optional[str] = None
    category_id: Optional[int] = None
    payment_method: Optional[str] = None
    paid: bool = False
    has_card_fee: bool = False
    card_fee_rate: Decimal = Decimal("0.00")
    custom_due_dates: tuple[date, ...] = ()


@dataclass(frozen=True)
class PaymentConfirmation:
    """Payment details recorded against one transaction."""

    paid_amount: Decimal
    interest: Decimal = Decimal("0.00")
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    has_card_fee: bool = False
    card_fee_rate: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class TermsEdit:
    """New amount and/or due date for one installment."""

    amount: Optional[Decimal] = None
    due_date: Optional[date] = None


@dataclass(frozen=True)
class DueDateUpdate:
    """One member of a batched due-date change."""

    transaction_id: int
    due_date: date


# Derived entities


@dataclass(frozen=True)
class InstallmentView:
    """A group member with the due date shown for it."""

    transaction: Transaction
    display_due_date: date


@dataclass(frozen=True)
class InstallmentGroup:
    """Read-time aggregation of transactions sharing a group key."""

    key: str
    description: str
    installments: tuple[InstallmentView, ...]
    total: Decimal
    interest_total: Decimal
    remaining: Decimal
    is_paid: bool
    base_date: date
    offset_dates: bool
    diagnostics: tuple[str, ...] = ()

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(view.transaction for view in self.installments)


@dataclass(frozen=True)
class SettlementTotals:
    """Amounts already settled and still open across a set of transactions."""

    received: Decimal
    pending: Decimal


@dataclass(frozen=True)
class PaymentMethodSummary:
    """Income/expense totals for one payment method."""

    income: Decimal = Decimal("0.00")
    expense: Decimal = Decimal("0.00")
    count: int = 0


@dataclass(frozen=True)
class DREReport:
    """Income statement rollup for a set of transactions."""

    gross_revenue: Decimal
    deductions: Decimal
    net_revenue: Decimal
    direct_costs: Decimal
    gross_profit: Decimal
    gross_margin: Decimal
    selling_expenses: Decimal
    admin_expenses: Decimal
    other_operating_expenses: Decimal
    operating_result: Decimal
    operating_margin: Decimal
    taxes: Decimal
    net_result: Decimal
    net_margin: Decimal
    revenue_by_category: dict[str, Decimal] = field(default_factory=dict)
    expenses_by_category: dict[str, Decimal] = field(default_factory=dict)
    payment_methods: dict[str, PaymentMethodSummary] = field(default_factory=dict)
    transaction_count: int = 0
    diagnostics: tuple[str, ...] = ()


@dataclass(frozen=True)
class MonthlyResult:
    """Revenue, expenses and profit for one calendar month."""

    month: date
    revenue: Decimal
    expenses: Decimal
    profit: Decimal
    margin: Decimal


@dataclass(frozen=True)
class MonthlyComparison:
    """Month-by-month results with period averages."""

    months: tuple[MonthlyResult, ...]
    average_revenue: Decimal
    average_expenses: Decimal
    average_profit: Decimal
    average_margin: Decimal
    profitable_months_percent: Decimal


@dataclass(frozen=True)
class MatchCandidate:
    """A transaction that could settle a bank statement item."""

    transaction: Transaction
    days_apart: int
