"""Guardian (billing family) model, owned by the enrollment subsystem."""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class Guardian(Base):
    __tablename__ = "guardians"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    home_address = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    child_links = relationship("ChildGuardianLink", back_populates="guardian", cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="family")
    payments = relationship("Payment", back_populates="family")

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
