"""Fee schedule store: dated rate tiers keyed by age group and schedule type."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, List

from sqlalchemy.orm import Session

from backend.app.core.errors import InvalidStateError, NotFoundError, ValidationError
from backend.app.core.time import utc_today
from backend.app.models.fee_tier import AGE_GROUPS, SCHEDULE_TYPES, FeeTier
from backend.app.models.invoice_line_item import InvoiceLineItem
from backend.app.services.billing import invoice_transaction, parse_money

logger = logging.getLogger(__name__)

MONEY_FIELDS = (
    "weekly_rate",
    "daily_rate",
    "hourly_rate",
    "registration_fee",
    "late_pickup_fee_per_minute",
    "late_payment_fee",
)
# Fields frozen once any invoice line references the tier.
PRICING_FIELDS = MONEY_FIELDS + ("sibling_discount_pct", "age_group", "schedule_type", "effective_date")

WEEKLY_SCHEDULES = ("full_time", "part_time", "after_school", "before_school")


def age_in_months(date_of_birth: date, as_of: date) -> int:
    months = (as_of.year - date_of_birth.year) * 12 + (as_of.month - date_of_birth.month)
    if as_of.day < date_of_birth.day:
        months -= 1
    return months


def age_group_for(date_of_birth: date, as_of: date) -> str:
    months = age_in_months(date_of_birth, as_of)
    if months <= 15:
        return "infant"
    if months <= 23:
        return "toddler"
    if months <= 59:
        return "preschool"
    return "school_age"


def rate_for_schedule(tier: FeeTier, schedule_type: str) -> Decimal:
    if schedule_type == "drop_in":
        return tier.daily_rate
    if schedule_type in WEEKLY_SCHEDULES:
        return tier.weekly_rate
    raise ValidationError(f"Unknown schedule type: {schedule_type}", field="schedule_type")


def _validate_tier_fields(data: dict[str, Any]) -> dict[str, Any]:
    cleaned = dict(data)
    if "name" in cleaned:
        name = (cleaned["name"] or "").strip()
        if not name:
            raise ValidationError("name is required", field="name")
        cleaned["name"] = name
    if "age_group" in cleaned and cleaned["age_group"] not in AGE_GROUPS:
        raise ValidationError(f"Unknown age group: {cleaned['age_group']}", field="age_group")
    if "schedule_type" in cleaned and cleaned["schedule_type"] not in SCHEDULE_TYPES:
        raise ValidationError(f"Unknown schedule type: {cleaned['schedule_type']}", field="schedule_type")
    for field in MONEY_FIELDS:
        if field in cleaned and cleaned[field] is not None:
            cleaned[field] = parse_money(cleaned[field], field)
    if "sibling_discount_pct" in cleaned and cleaned["sibling_discount_pct"] is not None:
        pct = cleaned["sibling_discount_pct"]
        if not isinstance(pct, int) or isinstance(pct, bool) or not 0 <= pct <= 100:
            raise ValidationError("sibling_discount_pct must be an integer between 0 and 100", field="sibling_discount_pct")
    return {key: value for key, value in cleaned.items() if value is not None}


def get_fee_tier(db: Session, tier_id: int) -> FeeTier:
    tier = db.query(FeeTier).filter(FeeTier.id == tier_id).first()
    if tier is None:
        raise NotFoundError("Fee tier", tier_id)
    return tier


def is_fee_tier_referenced(db: Session, tier_id: int) -> bool:
    return db.query(InvoiceLineItem.id).filter(InvoiceLineItem.fee_tier_id == tier_id).first() is not None


def create_fee_tier(db: Session, data: dict[str, Any]) -> FeeTier:
    for required in ("name", "age_group", "schedule_type"):
        if not data.get(required):
            raise ValidationError(f"{required} is required", field=required)
    cleaned = _validate_tier_fields(data)
    cleaned.setdefault("effective_date", utc_today())

    with invoice_transaction(db):
        tier = FeeTier(**cleaned)
        db.add(tier)
    db.refresh(tier)
    logger.info(
        "fee tier created id=%s age_group=%s schedule_type=%s effective_date=%s",
        tier.id,
        tier.age_group,
        tier.schedule_type,
        tier.effective_date,
    )
    return tier


def update_fee_tier(db: Session, tier_id: int, data: dict[str, Any]) -> FeeTier:
    tier = get_fee_tier(db, tier_id)
    cleaned = _validate_tier_fields(data)
    changed_pricing = [
        field for field in PRICING_FIELDS if field in cleaned and cleaned[field] != getattr(tier, field)
    ]
    if changed_pricing and is_fee_tier_referenced(db, tier_id):
        raise InvalidStateError(
            "Fee tier is referenced by issued invoices; create a new tier with a later effective date instead",
            fee_tier_id=tier_id,
            fields=changed_pricing,
        )

    with invoice_transaction(db):
        for field, value in cleaned.items():
            setattr(tier, field, value)
    db.refresh(tier)
    logger.info("fee tier updated id=%s fields=%s", tier.id, sorted(cleaned))
    return tier


def delete_fee_tier(db: Session, tier_id: int) -> None:
    tier = get_fee_tier(db, tier_id)
    if is_fee_tier_referenced(db, tier_id):
        raise InvalidStateError("Fee tier is referenced by issued invoices; deactivate it instead", fee_tier_id=tier_id)
    with invoice_transaction(db):
        db.delete(tier)
    logger.info("fee tier deleted id=%s", tier_id)


def list_fee_tiers(db: Session, include_inactive: bool = False) -> List[FeeTier]:
    query = db.query(FeeTier)
    if not include_inactive:
        query = query.filter(FeeTier.is_active.is_(True))
    return query.order_by(
        FeeTier.age_group.asc(),
        FeeTier.schedule_type.asc(),
        FeeTier.effective_date.desc(),
        FeeTier.id.desc(),
    ).all()


def resolve_fee_tier(db: Session, age_group: str, schedule_type: str, as_of: date) -> FeeTier | None:
    """Return the active tier with the latest effective date on or before ``as_of``."""
    return (
        db.query(FeeTier)
        .filter(
            FeeTier.age_group == age_group,
            FeeTier.schedule_type == schedule_type,
            FeeTier.is_active.is_(True),
            FeeTier.effective_date <= as_of,
        )
        .order_by(FeeTier.effective_date.desc(), FeeTier.id.desc())
        .first()
    )
