"""Financial summary report schemas."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel

from backend.app.schemas.common import Money


class StatusCounts(BaseModel):
    pending: int
    partial: int
    overdue: int
    paid: int
    void: int


class MethodTotalRead(BaseModel):
    method: str
    count: int
    total: Money


class MonthTotalRead(BaseModel):
    month: str
    billed: Money
    collected: Money


class FinancialSummaryRead(BaseModel):
    start_date: date
    end_date: date
    currency: str = "USD"
    total_billed: Money
    total_collected: Money
    total_outstanding: Money
    status_counts: StatusCounts
    payments_by_method: List[MethodTotalRead]
    monthly_trend: List[MonthTotalRead]


class FinancialInvoiceRow(BaseModel):
    id: int
    invoice_number: str
    family_id: int
    family_name: str
    issued_date: date
    due_date: date
    subtotal: Money
    total: Money
    amount_paid: Money
    balance_due: Money
    status: str


class FinancialPaymentRow(BaseModel):
    id: int
    payment_date: date
    amount: Money
    method: str
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    family_id: int
    family_name: str
    invoice_id: int
    invoice_number: str
