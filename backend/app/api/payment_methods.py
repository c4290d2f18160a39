"""Payment method catalogue endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.core.security import require_billing_manage, require_billing_view
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.payment_method import PaymentMethodCreate, PaymentMethodRead, PaymentMethodUpdate
from backend.app.services.payment_methods import (
    create_payment_method,
    list_payment_methods,
    update_payment_method,
)

router = APIRouter(prefix="/payment-methods", tags=["payment-methods"])


@router.get("/", response_model=List[PaymentMethodRead])
def list_methods(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    return list_payment_methods(db)


@router.get("/all", response_model=List[PaymentMethodRead])
def list_all_methods(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    return list_payment_methods(db, include_inactive=True)


@router.post("/", response_model=PaymentMethodRead, status_code=status.HTTP_201_CREATED)
def create_method(
    payload: PaymentMethodCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return create_payment_method(db, payload.model_dump(exclude_none=True))


@router.patch("/{method_id}", response_model=PaymentMethodRead)
def update_method(
    method_id: int,
    payload: PaymentMethodUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return update_payment_method(db, method_id, payload.model_dump(exclude_unset=True))
