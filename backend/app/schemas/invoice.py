"""Invoice schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.app.schemas.common import Money, MoneyInput
from backend.app.schemas.invoice_item import LineItemCreate, LineItemRead
from backend.app.schemas.payment import PaymentRead


class InvoiceCreate(BaseModel):
    family_id: int
    period_start: date
    period_end: date
    due_date: Optional[date] = None
    issued_date: Optional[date] = None
    line_items: List[LineItemCreate] = Field(default_factory=list)
    auto_price: bool = False
    tax_amount: MoneyInput = 0
    discount_amount: MoneyInput = 0
    notes: Optional[str] = None


class InvoiceUpdate(BaseModel):
    due_date: Optional[date] = None
    notes: Optional[str] = None
    tax_amount: Optional[MoneyInput] = None
    discount_amount: Optional[MoneyInput] = None
    expected_version: Optional[int] = Field(default=None, exclude=True)


class InvoiceVersion(BaseModel):
    expected_version: Optional[int] = None


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str
    family_id: int

    issued_date: date
    due_date: date
    period_start: date
    period_end: date

    status: str
    display_status: str
    subtotal: Money
    tax_amount: Money
    discount_amount: Money
    total: Money
    amount_paid: Money
    balance_due: Money
    notes: Optional[str] = None

    split_billing_pct: Optional[int] = None
    split_billing_payer: Optional[str] = None
    split_billing_payer_address: Optional[str] = None

    version: int
    created_at: datetime
    updated_at: datetime


class InvoiceDetail(InvoiceRead):
    line_items: List[LineItemRead] = Field(default_factory=list)
    payments: List[PaymentRead] = Field(default_factory=list)


class InvoiceGenerateRequest(BaseModel):
    period_start: date
    period_end: date
    due_date: Optional[date] = None


class SkippedFamily(BaseModel):
    family_id: int
    reason: str


class InvoiceGenerateResponse(BaseModel):
    generated: List[InvoiceRead]
    skipped: List[SkippedFamily]
    count: int
