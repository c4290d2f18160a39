"""Child-guardian link model tying children to their billing family."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base


class ChildGuardianLink(Base):
    __tablename__ = "child_guardian_links"

    id = Column(Integer, primary_key=True, index=True)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"), nullable=False, index=True)
    guardian_id = Column(Integer, ForeignKey("guardians.id", ondelete="CASCADE"), nullable=False, index=True)
    relationship_label = Column(String(50), nullable=True)
    # Guardian who receives the child's invoices; falls back to the lowest guardian id.
    is_billing_contact = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("child_id", "guardian_id", name="uq_child_guardian_link"),
    )

    child = relationship("Child", back_populates="guardian_links")
    guardian = relationship("Guardian", back_populates="child_links")
