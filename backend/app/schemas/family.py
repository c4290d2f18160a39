"""Family account schemas."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from backend.app.schemas.common import Money
from backend.app.schemas.invoice import InvoiceRead
from backend.app.schemas.payment import PaymentRead


class GuardianRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    home_address: Optional[str] = None


class ChildRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    date_of_birth: date
    enrollment_date: date
    schedule_type: str
    status: str


class FamilySummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_balance: Money
    total_paid: Money
    invoice_count: int


class FamilyAccountRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    guardian: GuardianRead
    children: List[ChildRead]
    invoices: List[InvoiceRead]
    payments: List[PaymentRead]
    payment_count: int
    summary: FamilySummaryRead


class FamilyBalanceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    family_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    children_names: List[str]
    total_balance: Money
    last_payment_date: Optional[date] = None
