"""Family account aggregation: one guardian's children, invoices, payments and balance."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.app.core.errors import NotFoundError
from backend.app.models.child import Child
from backend.app.models.child_guardian import ChildGuardianLink
from backend.app.models.guardian import Guardian
from backend.app.models.invoice import Invoice
from backend.app.models.payment import Payment
from backend.app.services.billing import ZERO


@dataclass
class FamilySummary:
    total_balance: Decimal
    total_paid: Decimal
    invoice_count: int


@dataclass
class FamilyAccount:
    guardian: Guardian
    children: List[Child]
    invoices: List[Invoice]
    payments: List[Payment]
    payment_count: int
    summary: FamilySummary


@dataclass
class FamilyBalance:
    family_id: int
    first_name: str
    last_name: str
    email: str | None
    children_names: List[str]
    total_balance: Decimal
    last_payment_date: date | None


def get_family_account(db: Session, family_id: int, skip: int = 0, limit: int = 10) -> FamilyAccount:
    guardian = db.query(Guardian).filter(Guardian.id == family_id).first()
    if guardian is None:
        raise NotFoundError("Family", family_id)

    children = (
        db.query(Child)
        .join(ChildGuardianLink, ChildGuardianLink.child_id == Child.id)
        .filter(ChildGuardianLink.guardian_id == family_id)
        .order_by(Child.enrollment_date.asc(), Child.id.asc())
        .all()
    )
    invoices = (
        db.query(Invoice)
        .filter(Invoice.family_id == family_id)
        .order_by(Invoice.issued_date.desc(), Invoice.id.desc())
        .all()
    )
    payment_query = db.query(Payment).filter(Payment.family_id == family_id)
    payment_count = payment_query.count()
    payments = (
        payment_query.order_by(Payment.payment_date.desc(), Payment.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

    summary = FamilySummary(
        total_balance=sum((inv.balance_due for inv in invoices if inv.status != "void"), ZERO),
        total_paid=sum((inv.amount_paid for inv in invoices), ZERO),
        invoice_count=len(invoices),
    )
    return FamilyAccount(
        guardian=guardian,
        children=children,
        invoices=invoices,
        payments=payments,
        payment_count=payment_count,
        summary=summary,
    )


def list_family_balances(db: Session) -> List[FamilyBalance]:
    """Every guardian with active children's names, open balance and last payment date."""
    guardians = db.query(Guardian).order_by(Guardian.last_name.asc(), Guardian.first_name.asc(), Guardian.id.asc()).all()

    balances = dict(
        db.query(Invoice.family_id, func.coalesce(func.sum(Invoice.balance_due), 0))
        .filter(Invoice.status != "void")
        .group_by(Invoice.family_id)
        .all()
    )
    last_payments = dict(
        db.query(Payment.family_id, func.max(Payment.payment_date)).group_by(Payment.family_id).all()
    )
    active_children: dict[int, List[str]] = {}
    rows = (
        db.query(ChildGuardianLink.guardian_id, Child)
        .join(Child, Child.id == ChildGuardianLink.child_id)
        .filter(Child.status == "active")
        .order_by(Child.enrollment_date.asc(), Child.id.asc())
        .all()
    )
    for guardian_id, child in rows:
        active_children.setdefault(guardian_id, []).append(child.display_name)

    result = []
    for guardian in guardians:
        result.append(
            FamilyBalance(
                family_id=guardian.id,
                first_name=guardian.first_name,
                last_name=guardian.last_name,
                email=guardian.email,
                children_names=active_children.get(guardian.id, []),
                total_balance=Decimal(str(balances.get(guardian.id, ZERO))).quantize(Decimal("0.01")),
                last_payment_date=last_payments.get(guardian.id),
            )
        )
    return result
