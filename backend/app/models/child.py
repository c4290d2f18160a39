"""Child model, owned by the enrollment subsystem and read by billing."""

from sqlalchemy import Column, Date, DateTime, Integer, String
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base

CHILD_STATUSES = ("active", "inactive", "withdrawn")


class Child(Base):
    __tablename__ = "children"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    enrollment_date = Column(Date, nullable=False)
    schedule_type = Column(String(30), nullable=False, default="full_time")
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    guardian_links = relationship("ChildGuardianLink", back_populates="child", cascade="all, delete-orphan")
    line_items = relationship("InvoiceLineItem", back_populates="child")

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
