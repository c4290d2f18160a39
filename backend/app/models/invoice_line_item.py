"""Invoice line item model for billable and discount entries."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base

LINE_ITEM_TYPES = (
    "tuition",
    "registration",
    "supply_fee",
    "activity_fee",
    "late_pickup",
    "late_payment",
    "discount",
    "other",
)


class InvoiceLineItem(Base):
    __tablename__ = "invoice_line_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    child_id = Column(Integer, ForeignKey("children.id"), nullable=True, index=True)
    fee_tier_id = Column(Integer, ForeignKey("fee_tiers.id"), nullable=True, index=True)
    description = Column(String(255), nullable=False)
    item_type = Column(String(30), nullable=False, default="tuition")
    quantity = Column(Numeric(10, 2), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    invoice = relationship("Invoice", back_populates="line_items")
    child = relationship("Child", back_populates="line_items")
    fee_tier = relationship("FeeTier", back_populates="line_items")
