"""Plain-dict renderings of entities and reports.

Money is rendered as decimal strings with two fraction digits, dates as ISO
strings. The dicts are JSON-serializable as they are.
"""

from datetime import date, datetime
from typing import Any, Optional, Union

from finctl.domain.entities import (
    BankStatementItem,
    Category,
    DREReport,
    InstallmentGroup,
    MatchCandidate,
    MonthlyComparison,
    SettlementTotals,
    Transaction,
)
from finctl.utils.amount_parser import format_amount, format_rate


def _iso(value: Optional[Union[date, datetime]]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def category_payload(category: Category) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "type": category.type.value,
    }


def transaction_payload(txn: Transaction) -> dict[str, Any]:
    return {
        "id": txn.id,
        "type": txn.type.value,
        "status": txn.status.value,
        "description": txn.description,
        "amount": format_amount(txn.amount),
        "original_amount": format_amount(txn.original_amount),
        "interest": format_amount(txn.interest),
        "paid_amount": format_amount(txn.paid_amount),
        "due_date": _iso(txn.due_date),
        "payment_date": _iso(txn.payment_date),
        "payment_method": txn.payment_method,
        "installment_group": txn.installment_group,
        "installment_index": txn.installment_index,
        "installment_total": txn.installment_total,
        "is_reconciled": txn.is_reconciled,
        "customer_id": txn.customer_id,
        "supplier_id": txn.supplier_id,
        "category_id": txn.category_id,
        "category": txn.category,
        "has_card_fee": txn.has_card_fee,
        "card_fee_rate": format_rate(txn.card_fee_rate),
        "card_fee_amount": format_amount(txn.card_fee_amount),
    }


def bank_item_payload(item: BankStatementItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "date": _iso(item.date),
        "amount": format_amount(item.amount),
        "description": item.description,
        "status": item.status.value,
        "transaction_id": item.transaction_id,
    }


def match_candidate_payload(candidate: MatchCandidate) -> dict[str, Any]:
    payload = transaction_payload(candidate.transaction)
    payload["days_apart"] = candidate.days_apart
    return payload


def group_payload(group: InstallmentGroup) -> dict[str, Any]:
    """Render a group with each member's displayed due date."""
    installments = []
    for view in group.installments:
        payload = transaction_payload(view.transaction)
        payload["display_due_date"] = _iso(view.display_due_date)
        installments.append(payload)
    return {
        "key": group.key,
        "description": group.description,
        "total": format_amount(group.total),
        "interest_total": format_amount(group.interest_total),
        "remaining": format_amount(group.remaining),
        "is_paid": group.is_paid,
        "base_date": _iso(group.base_date),
        "offset_dates": group.offset_dates,
        "installments": installments,
        "diagnostics": list(group.diagnostics),
    }


def settlement_payload(totals: SettlementTotals) -> dict[str, Any]:
    return {
        "received": format_amount(totals.received),
        "pending": format_amount(totals.pending),
    }


def dre_payload(report: DREReport) -> dict[str, Any]:
    """Render a DRE report, amounts and margins alike as two-digit strings."""
    return {
        "gross_revenue": format_amount(report.gross_revenue),
        "deductions": format_amount(report.deductions),
        "net_revenue": format_amount(report.net_revenue),
        "direct_costs": format_amount(report.direct_costs),
        "gross_profit": format_amount(report.gross_profit),
        "gross_margin": format_amount(report.gross_margin),
        "selling_expenses": format_amount(report.selling_expenses),
        "admin_expenses": format_amount(report.admin_expenses),
        "other_operating_expenses": format_amount(report.other_operating_expenses),
        "operating_result": format_amount(report.operating_result),
        "operating_margin": format_amount(report.operating_margin),
        "taxes": format_amount(report.taxes),
        "net_result": format_amount(report.net_result),
        "net_margin": format_amount(report.net_margin),
        "revenue_by_category": {
            name: format_amount(value) for name, value in sorted(report.revenue_by_category.items())
        },
        "expenses_by_category": {
            name: format_amount(value) for name, value in sorted(report.expenses_by_category.items())
        },
        "payment_methods": {
            method: {
                "income": format_amount(summary.income),
                "expense": format_amount(summary.expense),
                "count": summary.count,
            }
            for method, summary in sorted(report.payment_methods.items())
        },
        "transaction_count": report.transaction_count,
        "diagnostics": list(report.diagnostics),
    }


def monthly_payload(comparison: MonthlyComparison) -> dict[str, Any]:
    return {
        "months": [
            {
                "month": result.month.strftime("%Y-%m"),
                "revenue": format_amount(result.revenue),
                "expenses": format_amount(result.expenses),
                "profit": format_amount(result.profit),
                "margin": format_amount(result.margin),
            }
            for result in comparison.months
        ],
        "average_revenue": format_amount(comparison.average_revenue),
        "average_expenses": format_amount(comparison.average_expenses),
        "average_profit": format_amount(comparison.average_profit),
        "average_margin": format_amount(comparison.average_margin),
        "profitable_months_percent": format_amount(comparison.profitable_months_percent),
    }
