"""Payment schemas."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from backend.app.schemas.common import Money, MoneyInput


class PaymentBase(BaseModel):
    amount: MoneyInput
    method: str = "cash"
    payment_date: Optional[date] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None


class InvoicePaymentCreate(PaymentBase):
    expected_version: Optional[int] = None


class PaymentCreate(InvoicePaymentCreate):
    invoice_id: int


class PaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_id: int
    family_id: int
    amount: Money
    method: str
    payment_date: date
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
