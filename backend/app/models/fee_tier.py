"""Fee tier model: a dated rate plan per age group and schedule type."""

from decimal import Decimal

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base

AGE_GROUPS = ("infant", "toddler", "preschool", "school_age")
SCHEDULE_TYPES = ("full_time", "part_time", "drop_in", "after_school", "before_school")


class FeeTier(Base):
    __tablename__ = "fee_tiers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    age_group = Column(String(30), nullable=False, index=True)
    schedule_type = Column(String(30), nullable=False, index=True)
    weekly_rate = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    daily_rate = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    hourly_rate = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    registration_fee = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    late_pickup_fee_per_minute = Column(Numeric(10, 2), nullable=False, default=Decimal("1.00"))
    late_payment_fee = Column(Numeric(10, 2), nullable=False, default=Decimal("25.00"))
    sibling_discount_pct = Column(Integer, nullable=False, default=0)
    effective_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    line_items = relationship("InvoiceLineItem", back_populates="fee_tier")
