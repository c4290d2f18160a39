"""Counter rows backing sequential invoice numbers."""

from sqlalchemy import Column, Integer, String

from backend.app.db.base_class import Base


class InvoiceSequence(Base):
    __tablename__ = "invoice_sequences"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, unique=True)
    current_value = Column(Integer, nullable=False, default=0)
