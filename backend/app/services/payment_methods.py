"""Payment method catalogue: list, add, relabel and retire tender types."""

import logging
import re
from typing import Any, List

from sqlalchemy.orm import Session

from backend.app.core.errors import NotFoundError, ValidationError
from backend.app.models.payment_method import PaymentMethod
from backend.app.services.billing import invoice_transaction

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(r"^[a-z0-9_]+$")


def code_from_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


def list_payment_methods(db: Session, include_inactive: bool = False) -> List[PaymentMethod]:
    query = db.query(PaymentMethod)
    if not include_inactive:
        query = query.filter(PaymentMethod.is_active.is_(True))
    return query.order_by(PaymentMethod.name.asc(), PaymentMethod.id.asc()).all()


def get_payment_method(db: Session, method_id: int) -> PaymentMethod:
    method = db.query(PaymentMethod).filter(PaymentMethod.id == method_id).first()
    if method is None:
        raise NotFoundError("Payment method", method_id)
    return method


def require_active_method(db: Session, code: str) -> PaymentMethod:
    """Return the active catalogue row for ``code`` or reject the payment."""
    method = db.query(PaymentMethod).filter(PaymentMethod.code == code).first()
    if method is None:
        raise ValidationError(f"Unknown payment method: {code}", field="method")
    if not method.is_active:
        raise ValidationError(f"Payment method is inactive: {code}", field="method")
    return method


def create_payment_method(db: Session, data: dict[str, Any]) -> PaymentMethod:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required", field="name")
    code = data.get("code") or code_from_name(name)
    if not CODE_PATTERN.match(code):
        raise ValidationError("code may only contain lowercase letters, digits and underscores", field="code")
    if db.query(PaymentMethod).filter(PaymentMethod.code == code).first() is not None:
        raise ValidationError(f"Payment method already exists: {code}", field="code", code=code)

    with invoice_transaction(db):
        method = PaymentMethod(code=code, name=name, is_active=data.get("is_active", True))
        db.add(method)
    db.refresh(method)
    logger.info("payment method created id=%s code=%s", method.id, method.code)
    return method


def update_payment_method(db: Session, method_id: int, data: dict[str, Any]) -> PaymentMethod:
    method = get_payment_method(db, method_id)
    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise ValidationError("name cannot be blank", field="name")
        data = {**data, "name": name}

    with invoice_transaction(db):
        for field in ("name", "is_active"):
            if data.get(field) is not None:
                setattr(method, field, data[field])
    db.refresh(method)
    logger.info("payment method updated id=%s code=%s is_active=%s", method.id, method.code, method.is_active)
    return method
