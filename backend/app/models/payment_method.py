"""Payment method catalogue: the tender types staff may record a payment with."""

from sqlalchemy import Boolean, Column, Integer, String, event

from backend.app.db.base_class import Base

DEFAULT_PAYMENT_METHODS = (
    ("cash", "Cash"),
    ("check", "Check"),
    ("money_order", "Money Order"),
    ("credit_card", "Credit Card"),
    ("ach", "ACH Transfer"),
    ("zelle", "Zelle"),
    ("venmo", "Venmo"),
    ("subsidy", "Subsidy"),
    ("other", "Other"),
)


class PaymentMethod(Base):
    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True, index=True)
    # Stable key stored on payments; the name may be relabelled freely.
    code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


@event.listens_for(PaymentMethod.__table__, "after_create")
def _seed_default_methods(target, connection, **kw):
    connection.execute(
        target.insert(),
        [{"code": code, "name": name, "is_active": True} for code, name in DEFAULT_PAYMENT_METHODS],
    )
