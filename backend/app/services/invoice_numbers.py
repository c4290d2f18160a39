"""Sequential, prefixed invoice numbers backed by a locked counter row."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.errors import ConcurrencyConflictError
from backend.app.models.invoice_sequence import InvoiceSequence

logger = logging.getLogger(__name__)


def format_invoice_number(prefix: str, value: int) -> str:
    return f"{prefix}-{value:06d}"


def next_invoice_number(db: Session, prefix: str) -> str:
    """Allocate the next number for ``prefix`` inside the caller's transaction.

    The counter row stays locked until the caller commits, and a rollback
    returns the number to the pool, so failed builds never leave gaps.
    """
    counter = (
        db.query(InvoiceSequence)
        .filter(InvoiceSequence.name == prefix)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if counter is None:
        counter = InvoiceSequence(name=prefix, current_value=0)
        db.add(counter)
        try:
            db.flush()
        except IntegrityError as exc:
            raise ConcurrencyConflictError(f"Invoice sequence {prefix} was created concurrently") from exc

    counter.current_value += 1
    db.flush()
    number = format_invoice_number(prefix, counter.current_value)
    logger.debug("allocated invoice number %s", number)
    return number
