"""Fee tier schemas."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from backend.app.schemas.common import Money, MoneyInput, Percent

AgeGroup = Literal["infant", "toddler", "preschool", "school_age"]
ScheduleType = Literal["full_time", "part_time", "drop_in", "after_school", "before_school"]


class FeeTierCreate(BaseModel):
    name: str
    age_group: AgeGroup
    schedule_type: ScheduleType
    weekly_rate: MoneyInput = 0
    daily_rate: MoneyInput = 0
    hourly_rate: MoneyInput = 0
    registration_fee: MoneyInput = 0
    late_pickup_fee_per_minute: MoneyInput = 1
    late_payment_fee: MoneyInput = 25
    sibling_discount_pct: Percent = 0
    effective_date: Optional[date] = None


class FeeTierUpdate(BaseModel):
    name: Optional[str] = None
    age_group: Optional[AgeGroup] = None
    schedule_type: Optional[ScheduleType] = None
    weekly_rate: Optional[MoneyInput] = None
    daily_rate: Optional[MoneyInput] = None
    hourly_rate: Optional[MoneyInput] = None
    registration_fee: Optional[MoneyInput] = None
    late_pickup_fee_per_minute: Optional[MoneyInput] = None
    late_payment_fee: Optional[MoneyInput] = None
    sibling_discount_pct: Optional[Percent] = None
    effective_date: Optional[date] = None
    is_active: Optional[bool] = None


class FeeTierRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    age_group: str
    schedule_type: str
    weekly_rate: Money
    daily_rate: Money
    hourly_rate: Money
    registration_fee: Money
    late_pickup_fee_per_minute: Money
    late_payment_fee: Money
    sibling_discount_pct: int
    effective_date: date
    is_active: bool
    created_at: datetime
    updated_at: datetime
