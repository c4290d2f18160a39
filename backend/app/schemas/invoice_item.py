"""Invoice line item schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.app.schemas.common import Money, MoneyInput

LineItemType = Literal[
    "tuition",
    "registration",
    "supply_fee",
    "activity_fee",
    "late_pickup",
    "late_payment",
    "discount",
    "other",
]


class LineItemCreate(BaseModel):
    description: str
    item_type: LineItemType = "tuition"
    quantity: MoneyInput = Decimal("1")
    unit_price: MoneyInput
    child_id: Optional[int] = None
    expected_version: Optional[int] = Field(default=None, exclude=True)


class LineItemUpdate(BaseModel):
    description: Optional[str] = None
    item_type: Optional[LineItemType] = None
    quantity: Optional[MoneyInput] = None
    unit_price: Optional[MoneyInput] = None
    child_id: Optional[int] = None
    expected_version: Optional[int] = Field(default=None, exclude=True)


class LineItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_id: int
    child_id: Optional[int] = None
    fee_tier_id: Optional[int] = None
    description: str
    item_type: str
    quantity: Money
    unit_price: Money
    total: Money
    created_at: datetime
