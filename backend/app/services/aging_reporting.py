"""Receivables aging: outstanding balances bucketed by days past due."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List

from sqlalchemy.orm import Session

from backend.app.core.time import utc_today
from backend.app.models.guardian import Guardian
from backend.app.models.invoice import EDITABLE_STATUSES, Invoice
from backend.app.services.billing import ZERO

BUCKETS = ("current", "days30", "days60", "days90", "over90")


@dataclass
class AgingBucket:
    invoices: List[Invoice] = field(default_factory=list)
    total: Decimal = ZERO


@dataclass
class FamilyAgingRow:
    family_id: int
    family_name: str
    buckets: Dict[str, Decimal]
    total: Decimal


@dataclass
class AgingReport:
    as_of: date
    buckets: Dict[str, AgingBucket]
    total_outstanding: Decimal
    families: List[FamilyAgingRow]


def _init_buckets() -> Dict[str, Decimal]:
    return {key: ZERO for key in BUCKETS}


def bucket_for_days(days_past_due: int) -> str:
    if days_past_due <= 0:
        return "current"
    if days_past_due <= 30:
        return "days30"
    if days_past_due <= 60:
        return "days60"
    if days_past_due <= 90:
        return "days90"
    return "over90"


def compute_aging(db: Session, as_of: date | None = None) -> AgingReport:
    """Bucket every open (pending or partial, overdue included) invoice with a balance."""
    as_of_date = as_of or utc_today()

    invoices = (
        db.query(Invoice)
        .filter(
            Invoice.status.in_(EDITABLE_STATUSES),
            Invoice.balance_due > ZERO,
        )
        .order_by(Invoice.due_date.asc(), Invoice.id.asc())
        .all()
    )

    buckets = {key: AgingBucket() for key in BUCKETS}
    per_family: Dict[int, Dict[str, Decimal]] = {}

    for inv in invoices:
        balance = inv.balance_due
        key = bucket_for_days((as_of_date - inv.due_date).days)
        buckets[key].invoices.append(inv)
        buckets[key].total += balance
        per_family.setdefault(inv.family_id, _init_buckets())[key] += balance

    total_outstanding = sum((bucket.total for bucket in buckets.values()), ZERO)

    family_rows: List[FamilyAgingRow] = []
    if per_family:
        family_map = {
            guardian.id: guardian
            for guardian in db.query(Guardian).filter(Guardian.id.in_(per_family.keys())).all()
        }
        for family_id, family_buckets in per_family.items():
            guardian = family_map.get(family_id)
            family_rows.append(
                FamilyAgingRow(
                    family_id=family_id,
                    family_name=guardian.display_name if guardian else "Unknown",
                    buckets=family_buckets,
                    total=sum(family_buckets.values(), ZERO),
                )
            )
        family_rows.sort(key=lambda row: (-row.total, row.family_id))

    return AgingReport(
        as_of=as_of_date,
        buckets=buckets,
        total_outstanding=total_outstanding,
        families=family_rows,
    )
