"""Billing service utilities shared by the invoice builder, line items and the payment ledger."""

import logging
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from backend.app.core.errors import (
    ConcurrencyConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from backend.app.models.invoice import Invoice

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(value: Decimal | int | str | None, field: str, *, allow_negative: bool = False) -> Decimal:
    """Convert an input amount to a cent-exact Decimal; sub-cent precision is rejected."""
    if value is None:
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, float):
        raise ValidationError(f"{field} must be a decimal string, not a float", field=field)
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(f"{field} is not a valid amount", field=field) from exc
    if not amount.is_finite():
        raise ValidationError(f"{field} is not a valid amount", field=field)
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} must have at most two decimal places", field=field)
    if amount < ZERO and not allow_negative:
        raise ValidationError(f"{field} must not be negative", field=field)
    return quantize_money(amount)


def format_money(value: Decimal | None) -> str:
    return str(quantize_money(Decimal(str(value or 0))))


def percent_of(amount: Decimal, pct: int) -> Decimal:
    return quantize_money(Decimal(str(amount)) * Decimal(pct) / HUNDRED)


def calculate_line_total(quantity: Decimal, unit_price: Decimal) -> Decimal:
    return quantize_money(Decimal(str(quantity)) * Decimal(str(unit_price)))


def recalculate_invoice_totals(invoice: Invoice) -> None:
    """Derive subtotal, total, amount paid and balance from line items and payments."""
    subtotal = sum((item.total for item in invoice.line_items if item.total is not None), ZERO)
    tax = invoice.tax_amount or ZERO
    discount = invoice.discount_amount or ZERO
    total = quantize_money(subtotal + tax - discount)
    if total < ZERO:
        raise ValidationError(
            "Invoice total cannot be negative",
            subtotal=format_money(subtotal),
            tax_amount=format_money(tax),
            discount_amount=format_money(discount),
        )
    paid = sum((p.amount for p in invoice.payments if p.amount is not None), ZERO)

    invoice.subtotal = quantize_money(subtotal)
    invoice.total = total
    invoice.amount_paid = quantize_money(paid)
    balance = total - paid
    if balance < ZERO:
        balance = ZERO
    invoice.balance_due = quantize_money(balance)


def determine_invoice_status(invoice: Invoice) -> str:
    if invoice.status == "void":
        return invoice.status
    if invoice.amount_paid <= ZERO:
        return "pending"
    if invoice.balance_due <= ZERO:
        return "paid"
    return "partial"


def recalculate_invoice(invoice: Invoice) -> None:
    recalculate_invoice_totals(invoice)
    invoice.status = determine_invoice_status(invoice)


def get_invoice(db: Session, invoice_id: int) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if invoice is None:
        raise NotFoundError("Invoice", invoice_id)
    return invoice


def get_invoice_for_update(db: Session, invoice_id: int, expected_version: int | None = None) -> Invoice:
    """Load an invoice under a row lock, optionally checking the caller's version."""
    invoice = (
        db.query(Invoice)
        .filter(Invoice.id == invoice_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if invoice is None:
        raise NotFoundError("Invoice", invoice_id)
    if expected_version is not None and invoice.version != expected_version:
        raise ConcurrencyConflictError(
            f"Invoice {invoice_id} was modified concurrently",
            expected_version=expected_version,
            current_version=invoice.version,
        )
    return invoice


def ensure_editable(invoice: Invoice, action: str) -> None:
    if not invoice.is_editable:
        logger.warning("rejected %s on invoice_id=%s status=%s", action, invoice.id, invoice.status)
        raise InvalidStateError(
            f"Cannot {action} on a {invoice.status} invoice",
            invoice_id=invoice.id,
            status=invoice.status,
        )


@contextmanager
def invoice_transaction(db: Session) -> Iterator[None]:
    """Commit the enclosed read-modify-write as one unit, or roll all of it back."""
    try:
        yield
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.warning("invoice version conflict: %s", exc)
        raise ConcurrencyConflictError("Invoice was modified concurrently; retry the operation") from exc
    except SQLAlchemyError:
        db.rollback()
        logger.exception("storage failure during billing transaction")
        raise
    except Exception:
        db.rollback()
        raise
