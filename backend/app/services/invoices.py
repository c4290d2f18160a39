"""Invoice-related service helpers: line-item edits, field updates and listing."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, List

from sqlalchemy.orm import Session

from backend.app.core.errors import NotFoundError, ValidationError
from backend.app.core.time import utc_today
from backend.app.models.child import Child
from backend.app.models.invoice import EDITABLE_STATUSES, INVOICE_STATUSES, Invoice
from backend.app.models.invoice_line_item import LINE_ITEM_TYPES, InvoiceLineItem
from backend.app.services.billing import (
    ZERO,
    calculate_line_total,
    ensure_editable,
    format_money,
    get_invoice_for_update,
    invoice_transaction,
    parse_money,
    recalculate_invoice,
)

logger = logging.getLogger(__name__)


def new_line_item(
    *,
    description: str | None,
    item_type: str = "tuition",
    quantity: Decimal | int | str = Decimal("1"),
    unit_price: Decimal | int | str = ZERO,
    child_id: int | None = None,
    fee_tier_id: int | None = None,
) -> InvoiceLineItem:
    """Validate one line item and compute its total; the caller attaches it to an invoice."""
    description = (description or "").strip()
    if not description:
        raise ValidationError("description is required", field="description")
    if item_type not in LINE_ITEM_TYPES:
        raise ValidationError(f"Unknown line item type: {item_type}", field="item_type")
    qty = parse_money(quantity, "quantity", allow_negative=True)
    if qty <= ZERO:
        raise ValidationError("quantity must be greater than zero", field="quantity")
    price = parse_money(unit_price, "unit_price", allow_negative=True)
    if item_type == "discount" and price > ZERO:
        raise ValidationError("discount lines must have a unit price of zero or less", field="unit_price")
    if item_type != "discount" and price < ZERO:
        raise ValidationError("unit_price must not be negative", field="unit_price")
    return InvoiceLineItem(
        description=description,
        item_type=item_type,
        quantity=qty,
        unit_price=price,
        total=calculate_line_total(qty, price),
        child_id=child_id,
        fee_tier_id=fee_tier_id,
    )


def _check_child(db: Session, child_id: int | None) -> None:
    if child_id is not None and db.query(Child.id).filter(Child.id == child_id).first() is None:
        raise NotFoundError("Child", child_id)


def _get_line_item(invoice: Invoice, item_id: int) -> InvoiceLineItem:
    item = next((li for li in invoice.line_items if li.id == item_id), None)
    if item is None:
        raise NotFoundError("Line item", item_id)
    return item


def add_line_item(
    db: Session,
    invoice_id: int,
    data: dict[str, Any],
    expected_version: int | None = None,
) -> InvoiceLineItem:
    with invoice_transaction(db):
        invoice = get_invoice_for_update(db, invoice_id, expected_version)
        ensure_editable(invoice, "add a line item")
        _check_child(db, data.get("child_id"))
        item = new_line_item(**data)
        invoice.line_items.append(item)
        recalculate_invoice(invoice)
    db.refresh(item)
    logger.info(
        "line item added invoice_id=%s item_id=%s type=%s total=%s",
        invoice_id,
        item.id,
        item.item_type,
        format_money(item.total),
    )
    return item


def update_line_item(
    db: Session,
    invoice_id: int,
    item_id: int,
    data: dict[str, Any],
    expected_version: int | None = None,
) -> InvoiceLineItem:
    with invoice_transaction(db):
        invoice = get_invoice_for_update(db, invoice_id, expected_version)
        ensure_editable(invoice, "edit a line item")
        item = _get_line_item(invoice, item_id)
        _check_child(db, data.get("child_id"))
        merged = {
            "description": data.get("description", item.description),
            "item_type": data.get("item_type", item.item_type),
            "quantity": data.get("quantity", item.quantity),
            "unit_price": data.get("unit_price", item.unit_price),
            "child_id": data.get("child_id", item.child_id),
            "fee_tier_id": item.fee_tier_id,
        }
        replacement = new_line_item(**merged)
        for field in ("description", "item_type", "quantity", "unit_price", "total", "child_id"):
            setattr(item, field, getattr(replacement, field))
        recalculate_invoice(invoice)
    db.refresh(item)
    logger.info("line item updated invoice_id=%s item_id=%s total=%s", invoice_id, item_id, format_money(item.total))
    return item


def delete_line_item(db: Session, invoice_id: int, item_id: int, expected_version: int | None = None) -> Invoice:
    with invoice_transaction(db):
        invoice = get_invoice_for_update(db, invoice_id, expected_version)
        ensure_editable(invoice, "delete a line item")
        item = _get_line_item(invoice, item_id)
        invoice.line_items.remove(item)
        recalculate_invoice(invoice)
    db.refresh(invoice)
    logger.info("line item deleted invoice_id=%s item_id=%s", invoice_id, item_id)
    return invoice


def update_invoice(
    db: Session,
    invoice_id: int,
    data: dict[str, Any],
    expected_version: int | None = None,
) -> Invoice:
    """Edit due date, notes, tax or invoice-level discount while the invoice is editable."""
    with invoice_transaction(db):
        invoice = get_invoice_for_update(db, invoice_id, expected_version)
        ensure_editable(invoice, "update")
        if data.get("due_date") is not None:
            invoice.due_date = data["due_date"]
        if "notes" in data:
            invoice.notes = data["notes"]
        if data.get("tax_amount") is not None:
            invoice.tax_amount = parse_money(data["tax_amount"], "tax_amount")
        if data.get("discount_amount") is not None:
            invoice.discount_amount = parse_money(data["discount_amount"], "discount_amount")
        recalculate_invoice(invoice)
    db.refresh(invoice)
    logger.info("invoice updated invoice_id=%s fields=%s", invoice_id, sorted(data))
    return invoice


def list_invoices(
    db: Session,
    *,
    status: str | None = None,
    family_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    skip: int = 0,
    limit: int = 50,
    as_of: date | None = None,
) -> List[Invoice]:
    query = db.query(Invoice)
    if status and status != "all":
        if status == "overdue":
            query = query.filter(
                Invoice.status.in_(EDITABLE_STATUSES),
                Invoice.balance_due > ZERO,
                Invoice.due_date < (as_of or utc_today()),
            )
        elif status in INVOICE_STATUSES:
            query = query.filter(Invoice.status == status)
        else:
            raise ValidationError(f"Unknown invoice status: {status}", field="status")
    if family_id is not None:
        query = query.filter(Invoice.family_id == family_id)
    if start_date is not None:
        query = query.filter(Invoice.issued_date >= start_date)
    if end_date is not None:
        query = query.filter(Invoice.issued_date <= end_date)

    query = query.order_by(Invoice.issued_date.desc(), Invoice.id.desc()).offset(skip).limit(limit)
    return query.all()
