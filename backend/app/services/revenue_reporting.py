"""Financial summary: billed, collected and outstanding totals over an issue-date range."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session, joinedload

from backend.app.core.errors import ValidationError
from backend.app.core.time import utc_today
from backend.app.models.invoice import Invoice
from backend.app.models.payment import Payment
from backend.app.services.billing import ZERO

REPORT_STATUSES = ("pending", "partial", "overdue", "paid", "void")
# Drill-down filters on top of the per-status ones.
INVOICE_FILTERS = ("all", "billed", "collected", "outstanding") + REPORT_STATUSES


@dataclass
class MethodTotal:
    method: str
    count: int = 0
    total: Decimal = ZERO


@dataclass
class MonthTotal:
    month: str
    billed: Decimal = ZERO
    collected: Decimal = ZERO


@dataclass
class FinancialSummary:
    start_date: date
    end_date: date
    total_billed: Decimal
    total_collected: Decimal
    total_outstanding: Decimal
    status_counts: Dict[str, int]
    payments_by_method: List[MethodTotal] = field(default_factory=list)
    monthly_trend: List[MonthTotal] = field(default_factory=list)


def report_range(start_date: date | None, end_date: date | None) -> Tuple[date, date]:
    """Default to month-to-date; reject inverted ranges."""
    end = end_date or utc_today()
    start = start_date or end.replace(day=1)
    if start > end:
        raise ValidationError("start_date must not be after end_date", start_date=start.isoformat(), end_date=end.isoformat())
    return start, end


def _invoices_issued(db: Session, start: date, end: date) -> List[Invoice]:
    return (
        db.query(Invoice)
        .options(joinedload(Invoice.family))
        .filter(Invoice.issued_date >= start, Invoice.issued_date <= end)
        .order_by(Invoice.issued_date.desc(), Invoice.id.desc())
        .all()
    )


def _payments_received(db: Session, start: date, end: date) -> List[Payment]:
    return (
        db.query(Payment)
        .options(joinedload(Payment.family), joinedload(Payment.invoice))
        .filter(Payment.payment_date >= start, Payment.payment_date <= end)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )


def compute_financial_summary(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
    as_of: date | None = None,
) -> FinancialSummary:
    start, end = report_range(start_date, end_date)
    as_of_date = as_of or utc_today()
    invoices = _invoices_issued(db, start, end)

    status_counts = {status: 0 for status in REPORT_STATUSES}
    total_billed = total_collected = total_outstanding = ZERO
    months: Dict[str, MonthTotal] = {}
    for inv in invoices:
        status_counts["overdue" if inv.is_overdue(as_of_date) else inv.status] += 1
        if inv.status == "void":
            continue
        total_billed += inv.total
        total_collected += inv.amount_paid
        total_outstanding += inv.balance_due
        key = inv.issued_date.strftime("%Y-%m")
        month = months.setdefault(key, MonthTotal(month=key))
        month.billed += inv.total
        month.collected += inv.amount_paid

    methods: Dict[str, MethodTotal] = {}
    for payment in _payments_received(db, start, end):
        entry = methods.setdefault(payment.method, MethodTotal(method=payment.method))
        entry.count += 1
        entry.total += payment.amount

    return FinancialSummary(
        start_date=start,
        end_date=end,
        total_billed=total_billed,
        total_collected=total_collected,
        total_outstanding=total_outstanding,
        status_counts=status_counts,
        payments_by_method=sorted(methods.values(), key=lambda m: (-m.total, m.method)),
        monthly_trend=[months[key] for key in sorted(months)],
    )


def financial_invoices(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
    status: str = "all",
    as_of: date | None = None,
) -> List[Invoice]:
    """Invoices behind a summary figure. Void invoices appear only when asked for by status."""
    if status not in INVOICE_FILTERS:
        raise ValidationError(f"Unknown invoice filter: {status}", field="status")
    start, end = report_range(start_date, end_date)
    as_of_date = as_of or utc_today()
    invoices = _invoices_issued(db, start, end)

    if status == "void":
        return [inv for inv in invoices if inv.status == "void"]
    invoices = [inv for inv in invoices if inv.status != "void"]
    if status in ("all", "billed"):
        return invoices
    if status == "collected":
        return [inv for inv in invoices if inv.amount_paid > ZERO]
    if status == "outstanding":
        return [inv for inv in invoices if inv.balance_due > ZERO]
    if status == "overdue":
        return [inv for inv in invoices if inv.is_overdue(as_of_date)]
    return [inv for inv in invoices if inv.status == status and not inv.is_overdue(as_of_date)]


def financial_payments(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
    method: str | None = None,
) -> List[Payment]:
    start, end = report_range(start_date, end_date)
    payments = _payments_received(db, start, end)
    if method and method != "all":
        payments = [p for p in payments if p.method == method]
    return payments
