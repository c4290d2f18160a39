"""Payment ledger endpoints."""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.core.security import require_billing_manage, require_billing_view
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.payment import PaymentCreate, PaymentRead
from backend.app.services.payments import apply_payment, list_payments

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/", response_model=List[PaymentRead])
def list_all_payments(
    invoice_id: int | None = None,
    family_id: int | None = None,
    method: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    return list_payments(
        db,
        invoice_id=invoice_id,
        family_id=family_id,
        method=method,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )


@router.post("/", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return apply_payment(
        db,
        payload.invoice_id,
        payload.amount,
        method=payload.method,
        payment_date=payload.payment_date,
        reference_number=payload.reference_number,
        notes=payload.notes,
        expected_version=payload.expected_version,
    )
