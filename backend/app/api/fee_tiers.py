"""Fee schedule endpoints."""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from backend.app.core.errors import NotFoundError
from backend.app.core.security import require_billing_manage, require_billing_view
from backend.app.core.time import utc_today
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.fee_tier import AgeGroup, FeeTierCreate, FeeTierRead, FeeTierUpdate, ScheduleType
from backend.app.services.fee_schedule import (
    create_fee_tier,
    delete_fee_tier,
    list_fee_tiers,
    resolve_fee_tier,
    update_fee_tier,
)

router = APIRouter(prefix="/fee-tiers", tags=["fee-tiers"])


@router.get("/", response_model=List[FeeTierRead])
def list_tiers(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    return list_fee_tiers(db, include_inactive=include_inactive)


@router.get("/resolve", response_model=FeeTierRead)
def resolve_tier(
    age_group: AgeGroup,
    schedule_type: ScheduleType,
    as_of: date | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    tier = resolve_fee_tier(db, age_group, schedule_type, as_of or utc_today())
    if tier is None:
        raise NotFoundError("Fee tier", f"{age_group}/{schedule_type}")
    return tier


@router.post("/", response_model=FeeTierRead, status_code=status.HTTP_201_CREATED)
def create_tier(
    payload: FeeTierCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return create_fee_tier(db, payload.model_dump(exclude_none=True))


@router.patch("/{tier_id}", response_model=FeeTierRead)
def update_tier(
    tier_id: int,
    payload: FeeTierUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return update_fee_tier(db, tier_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{tier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tier(
    tier_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    delete_fee_tier(db, tier_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
