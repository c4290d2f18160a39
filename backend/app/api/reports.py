"""Receivables and financial reporting endpoints."""

from dataclasses import asdict
from datetime import date
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.core.security import require_billing_view
from backend.app.core.time import utc_today
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.aging import AgingInvoice, AgingReportRead
from backend.app.schemas.financial import FinancialInvoiceRow, FinancialPaymentRow, FinancialSummaryRead
from backend.app.services.aging_reporting import compute_aging
from backend.app.services.revenue_reporting import (
    compute_financial_summary,
    financial_invoices,
    financial_payments,
)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/aging", response_model=AgingReportRead)
def get_aging_report(
    as_of: date | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    report = compute_aging(db, as_of=as_of)
    return {
        "as_of": report.as_of,
        "buckets": {
            key: {
                "invoices": [AgingInvoice.model_validate(inv) for inv in bucket.invoices],
                "total": bucket.total,
            }
            for key, bucket in report.buckets.items()
        },
        "totals": {key: bucket.total for key, bucket in report.buckets.items()},
        "total_outstanding": report.total_outstanding,
        "families": [
            {
                "family_id": row.family_id,
                "family_name": row.family_name,
                "buckets": row.buckets,
                "total": row.total,
            }
            for row in report.families
        ],
    }


@router.get("/financial", response_model=FinancialSummaryRead)
def get_financial_summary(
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    return asdict(compute_financial_summary(db, start_date=start_date, end_date=end_date))


@router.get("/financial/invoices", response_model=List[FinancialInvoiceRow])
def get_financial_invoices(
    start_date: date | None = None,
    end_date: date | None = None,
    status: str = "all",
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    today = utc_today()
    return [
        {
            "id": inv.id,
            "invoice_number": inv.invoice_number,
            "family_id": inv.family_id,
            "family_name": inv.family.display_name,
            "issued_date": inv.issued_date,
            "due_date": inv.due_date,
            "subtotal": inv.subtotal,
            "total": inv.total,
            "amount_paid": inv.amount_paid,
            "balance_due": inv.balance_due,
            "status": "overdue" if inv.is_overdue(today) else inv.status,
        }
        for inv in financial_invoices(db, start_date=start_date, end_date=end_date, status=status, as_of=today)
    ]


@router.get("/financial/payments", response_model=List[FinancialPaymentRow])
def get_financial_payments(
    start_date: date | None = None,
    end_date: date | None = None,
    method: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    return [
        {
            "id": p.id,
            "payment_date": p.payment_date,
            "amount": p.amount,
            "method": p.method,
            "reference_number": p.reference_number,
            "notes": p.notes,
            "family_id": p.family_id,
            "family_name": p.family.display_name,
            "invoice_id": p.invoice_id,
            "invoice_number": p.invoice.invoice_number,
        }
        for p in financial_payments(db, start_date=start_date, end_date=end_date, method=method)
    ]
