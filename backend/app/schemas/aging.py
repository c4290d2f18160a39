"""Aging report schemas."""

from datetime import date
from typing import List

from pydantic import BaseModel, ConfigDict

from backend.app.schemas.common import Money


class AgingInvoice(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str
    family_id: int
    due_date: date
    total: Money
    balance_due: Money
    display_status: str


class AgingBucketRead(BaseModel):
    invoices: List[AgingInvoice]
    total: Money


class AgingBuckets(BaseModel):
    current: AgingBucketRead
    days30: AgingBucketRead
    days60: AgingBucketRead
    days90: AgingBucketRead
    over90: AgingBucketRead


class AgingBucketTotals(BaseModel):
    current: Money
    days30: Money
    days60: Money
    days90: Money
    over90: Money


class FamilyAgingRead(BaseModel):
    family_id: int
    family_name: str
    buckets: AgingBucketTotals
    total: Money


class AgingReportRead(BaseModel):
    as_of: date
    currency: str = "USD"
    buckets: AgingBuckets
    totals: AgingBucketTotals
    total_outstanding: Money
    families: List[FamilyAgingRead]
