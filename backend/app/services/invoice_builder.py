"""Invoice builder: assembles invoices from manual drafts or the fee schedule."""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, List, Sequence

from sqlalchemy.orm import Session

from backend.app.core.errors import NotFoundError, ValidationError
from backend.app.core.settings import BillingConfig
from backend.app.core.time import utc_today
from backend.app.models.child import Child
from backend.app.models.child_guardian import ChildGuardianLink
from backend.app.models.guardian import Guardian
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_line_item import InvoiceLineItem
from backend.app.services.billing import (
    ZERO,
    format_money,
    invoice_transaction,
    parse_money,
    percent_of,
    recalculate_invoice,
)
from backend.app.services.fee_schedule import age_group_for, rate_for_schedule, resolve_fee_tier
from backend.app.services.invoice_numbers import next_invoice_number
from backend.app.services.invoices import new_line_item

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    generated: List[Invoice] = field(default_factory=list)
    skipped: List[dict] = field(default_factory=list)


def default_due_date(config: BillingConfig, issued_date: date) -> date:
    if config.due_date_policy == "upon_receipt":
        return issued_date
    return issued_date + timedelta(days=config.due_date_days)


def billing_guardians(db: Session, child_ids: Sequence[int] | None = None) -> dict[int, int]:
    """Map each child to the single guardian billed for it.

    A link flagged ``is_billing_contact`` wins; otherwise the lowest guardian id.
    """
    query = db.query(ChildGuardianLink.child_id, ChildGuardianLink.guardian_id)
    if child_ids is not None:
        if not child_ids:
            return {}
        query = query.filter(ChildGuardianLink.child_id.in_(child_ids))
    rows = query.order_by(
        ChildGuardianLink.child_id.asc(),
        ChildGuardianLink.is_billing_contact.desc(),
        ChildGuardianLink.guardian_id.asc(),
    ).all()
    payers: dict[int, int] = {}
    for child_id, guardian_id in rows:
        payers.setdefault(child_id, guardian_id)
    return payers


def active_children_for_family(db: Session, family_id: int) -> List[Child]:
    """Active children billed to the family, earliest enrollment first."""
    linked = (
        db.query(Child)
        .join(ChildGuardianLink, ChildGuardianLink.child_id == Child.id)
        .filter(ChildGuardianLink.guardian_id == family_id, Child.status == "active")
        .order_by(Child.enrollment_date.asc(), Child.id.asc())
        .all()
    )
    payers = billing_guardians(db, [child.id for child in linked])
    return [child for child in linked if payers.get(child.id) == family_id]


def _children_with_tuition_for_period(
    db: Session, child_ids: Sequence[int], period_start: date, period_end: date
) -> set[int]:
    if not child_ids:
        return set()
    rows = (
        db.query(InvoiceLineItem.child_id)
        .join(Invoice, Invoice.id == InvoiceLineItem.invoice_id)
        .filter(
            InvoiceLineItem.child_id.in_(child_ids),
            InvoiceLineItem.item_type == "tuition",
            Invoice.status != "void",
            Invoice.period_start == period_start,
            Invoice.period_end == period_end,
        )
        .distinct()
        .all()
    )
    return {row[0] for row in rows}


def _previously_invoiced_child_ids(db: Session, child_ids: Sequence[int]) -> set[int]:
    if not child_ids:
        return set()
    rows = (
        db.query(InvoiceLineItem.child_id)
        .join(Invoice, Invoice.id == InvoiceLineItem.invoice_id)
        .filter(InvoiceLineItem.child_id.in_(child_ids), Invoice.status != "void")
        .distinct()
        .all()
    )
    return {row[0] for row in rows}


def price_family_children(
    db: Session, family_id: int, period_start: date, period_end: date
) -> List[InvoiceLineItem]:
    """Tuition, registration and sibling-discount lines for the family's unbilled children.

    The earliest-enrolled child pays full price; each later sibling gets a
    negative discount line at its tier's sibling discount percentage. The
    registration fee is charged only on a child's first non-void invoice.
    Children already carrying tuition for the same period are left out, so a
    child is billed once even when several guardians are priced.
    """
    children = active_children_for_family(db, family_id)
    if not children:
        raise ValidationError("Family has no active children to price", family_id=family_id)

    child_ids = [child.id for child in children]
    billed = _children_with_tuition_for_period(db, child_ids, period_start, period_end)
    if len(billed) == len(children):
        raise ValidationError("Every active child is already billed for this period", family_id=family_id)
    already_invoiced = _previously_invoiced_child_ids(db, child_ids)
    items: List[InvoiceLineItem] = []

    # positions span every child billed to the family so siblings keep their discount
    for position, child in enumerate(children):
        if child.id in billed:
            continue
        age_group = age_group_for(child.date_of_birth, period_start)
        tier = resolve_fee_tier(db, age_group, child.schedule_type, period_start)
        if tier is None:
            raise ValidationError(
                f"No active fee tier for {age_group}/{child.schedule_type} as of {period_start.isoformat()}",
                child_id=child.id,
                age_group=age_group,
                schedule_type=child.schedule_type,
            )
        rate = rate_for_schedule(tier, child.schedule_type)

        items.append(
            new_line_item(
                description=f"Tuition - {tier.name} ({child.display_name})",
                item_type="tuition",
                quantity=Decimal("1"),
                unit_price=rate,
                child_id=child.id,
                fee_tier_id=tier.id,
            )
        )

        if child.id not in already_invoiced and tier.registration_fee and tier.registration_fee > ZERO:
            items.append(
                new_line_item(
                    description=f"Registration fee ({child.display_name})",
                    item_type="registration",
                    quantity=Decimal("1"),
                    unit_price=tier.registration_fee,
                    child_id=child.id,
                    fee_tier_id=tier.id,
                )
            )

        if position > 0 and tier.sibling_discount_pct:
            discount = percent_of(rate, tier.sibling_discount_pct)
            if discount > ZERO:
                items.append(
                    new_line_item(
                        description=f"Sibling discount {tier.sibling_discount_pct}% ({child.display_name})",
                        item_type="discount",
                        quantity=Decimal("1"),
                        unit_price=-discount,
                        child_id=child.id,
                        fee_tier_id=tier.id,
                    )
                )

    return items


def build_invoice(
    db: Session,
    *,
    family_id: int,
    period_start: date,
    period_end: date,
    config: BillingConfig,
    line_items: Sequence[dict[str, Any]] | None = None,
    auto_price: bool = False,
    due_date: date | None = None,
    issued_date: date | None = None,
    tax_amount: Decimal | str | None = None,
    discount_amount: Decimal | str | None = None,
    notes: str | None = None,
) -> Invoice:
    """Persist a new pending invoice, or persist nothing when any input is rejected."""
    if period_end < period_start:
        raise ValidationError("period_end must not precede period_start", field="period_end")
    if db.query(Guardian.id).filter(Guardian.id == family_id).first() is None:
        raise NotFoundError("Family", family_id)

    issued = issued_date or utc_today()
    due = due_date or default_due_date(config, issued)
    tax = parse_money(tax_amount if tax_amount is not None else ZERO, "tax_amount")
    discount = parse_money(discount_amount if discount_amount is not None else ZERO, "discount_amount")

    items: List[InvoiceLineItem] = []
    if auto_price:
        items.extend(price_family_children(db, family_id, period_start, period_end))
    for draft in line_items or []:
        if draft.get("child_id") is not None and db.query(Child.id).filter(Child.id == draft["child_id"]).first() is None:
            raise NotFoundError("Child", draft["child_id"])
        items.append(new_line_item(**draft))
    if not items:
        raise ValidationError("An invoice needs line items or auto_price", field="line_items")

    with invoice_transaction(db):
        invoice = Invoice(
            invoice_number=next_invoice_number(db, config.invoice_prefix),
            family_id=family_id,
            issued_date=issued,
            due_date=due,
            period_start=period_start,
            period_end=period_end,
            tax_amount=tax,
            discount_amount=discount,
            notes=notes,
            status="pending",
        )
        invoice.line_items.extend(items)
        recalculate_invoice(invoice)
        db.add(invoice)
    db.refresh(invoice)
    logger.info(
        "invoice created invoice_id=%s number=%s family_id=%s lines=%s total=%s",
        invoice.id,
        invoice.invoice_number,
        family_id,
        len(items),
        format_money(invoice.total),
    )
    return invoice


def _billing_families(db: Session) -> List[int]:
    active_ids = [row[0] for row in db.query(Child.id).filter(Child.status == "active").all()]
    return sorted(set(billing_guardians(db, active_ids).values()))


def generate_invoices(
    db: Session,
    *,
    period_start: date,
    period_end: date,
    config: BillingConfig,
    due_date: date | None = None,
) -> BatchResult:
    """Auto-price one invoice per family with active children, each in its own transaction."""
    result = BatchResult()
    for family_id in _billing_families(db):
        existing = (
            db.query(Invoice.id)
            .filter(
                Invoice.family_id == family_id,
                Invoice.period_start == period_start,
                Invoice.period_end == period_end,
                Invoice.status != "void",
            )
            .first()
        )
        if existing is not None:
            result.skipped.append({"family_id": family_id, "reason": "already invoiced for this period"})
            continue
        try:
            invoice = build_invoice(
                db,
                family_id=family_id,
                period_start=period_start,
                period_end=period_end,
                config=config,
                auto_price=True,
                due_date=due_date,
            )
        except ValidationError as exc:
            logger.warning("skipped family_id=%s in batch generation: %s", family_id, exc.message)
            result.skipped.append({"family_id": family_id, "reason": exc.message})
            continue
        result.generated.append(invoice)
    logger.info(
        "batch generation period=%s..%s generated=%s skipped=%s",
        period_start,
        period_end,
        len(result.generated),
        len(result.skipped),
    )
    return result
