"""Family account endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.core.security import require_billing_view
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.family import FamilyAccountRead, FamilyBalanceRead
from backend.app.services.family_accounts import get_family_account, list_family_balances

router = APIRouter(prefix="/families", tags=["families"])


@router.get("/", response_model=List[FamilyBalanceRead])
def list_families(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    return [FamilyBalanceRead.model_validate(row) for row in list_family_balances(db)]


@router.get("/{family_id}/account", response_model=FamilyAccountRead)
def read_family_account(
    family_id: int,
    skip: int = 0,
    limit: int = 10,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    account = get_family_account(db, family_id, skip=skip, limit=limit)
    return FamilyAccountRead.model_validate(account)
