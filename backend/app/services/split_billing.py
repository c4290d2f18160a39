"""Split billing between a parent and a third-party payer.

There is one payment pool per invoice. The split only changes how an invoice
is presented: a parent-portion statement with proportional paid/balance
figures and an informational third-party statement. The ledger is untouched.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Literal, Union

from sqlalchemy.orm import Session

from backend.app.core.errors import ValidationError
from backend.app.core.settings import BillingConfig
from backend.app.models.invoice import Invoice
from backend.app.services.billing import (
    ensure_editable,
    get_invoice_for_update,
    invoice_transaction,
    percent_of,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitPortions:
    parent_pct: int
    parent_portion: Decimal
    third_party_portion: Decimal


@dataclass
class StatementHeader:
    invoice_id: int
    invoice_number: str
    issued_date: date
    due_date: date
    period_start: date
    period_end: date
    status: str
    facility_name: str
    facility_address: str | None
    footer_lines: List[str] = field(default_factory=list)


@dataclass
class StandardStatement:
    header: StatementHeader
    total: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    kind: Literal["standard"] = "standard"


@dataclass
class SplitParentStatement:
    header: StatementHeader
    parent_pct: int
    invoice_total: Decimal
    portion_total: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    kind: Literal["split_parent"] = "split_parent"


@dataclass
class SplitThirdPartyStatement:
    header: StatementHeader
    payer_name: str
    payer_address: str | None
    third_party_pct: int
    invoice_total: Decimal
    amount_due: Decimal
    kind: Literal["split_third_party"] = "split_third_party"


Statement = Union[StandardStatement, SplitParentStatement, SplitThirdPartyStatement]


def has_split(invoice: Invoice) -> bool:
    return invoice.split_billing_pct is not None and invoice.split_billing_pct < 100


def split_portions(total: Decimal, pct: int) -> SplitPortions:
    """Parent pays ``pct`` percent rounded to the cent; the third party gets the remainder."""
    parent_portion = percent_of(total, pct)
    return SplitPortions(
        parent_pct=pct,
        parent_portion=parent_portion,
        third_party_portion=Decimal(str(total)) - parent_portion,
    )


def _validate_pct(pct: int | None) -> None:
    if pct is None:
        return
    if not isinstance(pct, int) or isinstance(pct, bool) or not 0 <= pct <= 100:
        raise ValidationError("split_billing_pct must be an integer between 0 and 100", field="split_billing_pct")


def set_split(
    db: Session,
    invoice_id: int,
    pct: int | None,
    payer_name: str | None = None,
    payer_address: str | None = None,
    expected_version: int | None = None,
) -> Invoice:
    """Set or clear (pct of 100 or None) the split on an editable invoice."""
    _validate_pct(pct)
    clearing = pct is None or pct == 100
    payer_name = (payer_name or "").strip() or None
    if not clearing and payer_name is None:
        raise ValidationError("split_billing_payer is required for a split", field="split_billing_payer")

    with invoice_transaction(db):
        invoice = get_invoice_for_update(db, invoice_id, expected_version)
        ensure_editable(invoice, "change split billing")
        if clearing:
            invoice.split_billing_pct = None
            invoice.split_billing_payer = None
            invoice.split_billing_payer_address = None
        else:
            invoice.split_billing_pct = pct
            invoice.split_billing_payer = payer_name
            invoice.split_billing_payer_address = payer_address
    db.refresh(invoice)
    if clearing:
        logger.info("split billing cleared invoice_id=%s", invoice_id)
    else:
        logger.info("split billing set invoice_id=%s parent_pct=%s payer=%s", invoice_id, pct, payer_name)
    return invoice


def _header(invoice: Invoice, config: BillingConfig) -> StatementHeader:
    return StatementHeader(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        issued_date=invoice.issued_date,
        due_date=invoice.due_date,
        period_start=invoice.period_start,
        period_end=invoice.period_end,
        status=invoice.display_status,
        facility_name=config.facility_name,
        facility_address=config.facility_address,
        footer_lines=list(config.footer_lines),
    )


def build_statements(invoice: Invoice, config: BillingConfig) -> List[Statement]:
    header = _header(invoice, config)
    if not has_split(invoice):
        return [
            StandardStatement(
                header=header,
                total=invoice.total,
                amount_paid=invoice.amount_paid,
                balance_due=invoice.balance_due,
            )
        ]

    pct = invoice.split_billing_pct
    portions = split_portions(invoice.total, pct)
    parent = SplitParentStatement(
        header=header,
        parent_pct=pct,
        invoice_total=invoice.total,
        portion_total=portions.parent_portion,
        amount_paid=percent_of(invoice.amount_paid, pct),
        balance_due=percent_of(invoice.balance_due, pct),
    )
    third_party = SplitThirdPartyStatement(
        header=header,
        payer_name=invoice.split_billing_payer,
        payer_address=invoice.split_billing_payer_address,
        third_party_pct=100 - pct,
        invoice_total=invoice.total,
        amount_due=portions.third_party_portion,
    )
    return [parent, third_party]
