"""Invoice model for family billing."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now, utc_today
from backend.app.db.base_class import Base

# Persisted states only; "overdue" is projected at read time.
INVOICE_STATUSES = ("pending", "partial", "paid", "void")
EDITABLE_STATUSES = ("pending", "partial")


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(30), nullable=False, unique=True, index=True)
    family_id = Column(Integer, ForeignKey("guardians.id"), nullable=False, index=True)

    issued_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    status = Column(String(20), default="pending", nullable=False, index=True)
    subtotal = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    tax_amount = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    discount_amount = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    total = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    amount_paid = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    balance_due = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    notes = Column(Text, nullable=True)

    split_billing_pct = Column(Integer, nullable=True)
    split_billing_payer = Column(String(255), nullable=True)
    split_billing_payer_address = Column(String(255), nullable=True)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    family = relationship("Guardian", back_populates="invoices")
    line_items = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.id",
    )
    payments = relationship(
        "Payment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )

    @property
    def is_editable(self) -> bool:
        return self.status in EDITABLE_STATUSES

    def is_overdue(self, as_of: date | None = None) -> bool:
        check_date = as_of or utc_today()
        return (
            self.status in EDITABLE_STATUSES
            and self.balance_due is not None
            and self.balance_due > 0
            and self.due_date is not None
            and check_date > self.due_date
        )

    @property
    def display_status(self) -> str:
        return "overdue" if self.is_overdue() else self.status
