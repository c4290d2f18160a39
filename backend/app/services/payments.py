"""Payment ledger: append-only receipts and the invoice void action.

Applying a payment is the only way ``amount_paid`` changes. Funds are
recorded, never charged; there is no gateway call here.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from backend.app.core.errors import InvalidStateError, ValidationError
from backend.app.core.time import utc_today
from backend.app.models.invoice import Invoice
from backend.app.models.payment import Payment
from backend.app.services.billing import (
    ZERO,
    format_money,
    get_invoice_for_update,
    invoice_transaction,
    parse_money,
    recalculate_invoice_totals,
)
from backend.app.services.payment_methods import require_active_method

logger = logging.getLogger(__name__)


def apply_payment(
    db: Session,
    invoice_id: int,
    amount: Decimal | str,
    method: str = "cash",
    payment_date: date | None = None,
    reference_number: str | None = None,
    notes: str | None = None,
    expected_version: int | None = None,
) -> Payment:
    payment_amount = parse_money(amount, "amount", allow_negative=True)
    if payment_amount <= ZERO:
        raise ValidationError("amount must be greater than zero", field="amount")

    with invoice_transaction(db):
        require_active_method(db, method)
        invoice = get_invoice_for_update(db, invoice_id, expected_version)
        if invoice.status == "void":
            logger.warning("rejected payment on void invoice_id=%s amount=%s", invoice_id, format_money(payment_amount))
            raise InvalidStateError("Cannot apply a payment to a void invoice", invoice_id=invoice_id, status=invoice.status)

        payment = Payment(
            family_id=invoice.family_id,
            amount=payment_amount,
            method=method,
            payment_date=payment_date or utc_today(),
            reference_number=reference_number,
            notes=notes,
        )
        invoice.payments.append(payment)
        recalculate_invoice_totals(invoice)
        invoice.status = "paid" if invoice.balance_due <= ZERO else "partial"
    db.refresh(payment)
    logger.info(
        "payment applied payment_id=%s invoice_id=%s amount=%s method=%s balance_due=%s status=%s",
        payment.id,
        invoice_id,
        format_money(payment.amount),
        method,
        format_money(invoice.balance_due),
        invoice.status,
    )
    return payment


def void_invoice(db: Session, invoice_id: int, expected_version: int | None = None) -> Invoice:
    """Mark an unpaid invoice void; paid and balance values freeze where they are."""
    with invoice_transaction(db):
        invoice = get_invoice_for_update(db, invoice_id, expected_version)
        if invoice.status in ("paid", "void"):
            logger.warning("rejected void on invoice_id=%s status=%s", invoice_id, invoice.status)
            raise InvalidStateError(
                f"Cannot void a {invoice.status} invoice",
                invoice_id=invoice_id,
                status=invoice.status,
            )
        invoice.status = "void"
    db.refresh(invoice)
    logger.info("invoice voided invoice_id=%s balance_due=%s", invoice_id, format_money(invoice.balance_due))
    return invoice


def list_payments(
    db: Session,
    *,
    invoice_id: int | None = None,
    family_id: int | None = None,
    method: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    skip: int = 0,
    limit: int = 50,
) -> List[Payment]:
    query = db.query(Payment)
    if invoice_id is not None:
        query = query.filter(Payment.invoice_id == invoice_id)
    if family_id is not None:
        query = query.filter(Payment.family_id == family_id)
    if method:
        query = query.filter(Payment.method == method)
    if start_date is not None:
        query = query.filter(Payment.payment_date >= start_date)
    if end_date is not None:
        query = query.filter(Payment.payment_date <= end_date)
    query = query.order_by(Payment.payment_date.desc(), Payment.id.desc()).offset(skip).limit(limit)
    return query.all()
