"""Invoice routes: creation, editing, voiding, split billing and payments."""

from dataclasses import asdict
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.core.security import require_billing_manage, require_billing_view
from backend.app.core.settings import BillingConfig, get_billing_config
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.invoice import (
    InvoiceCreate,
    InvoiceDetail,
    InvoiceGenerateRequest,
    InvoiceGenerateResponse,
    InvoiceRead,
    InvoiceUpdate,
    InvoiceVersion,
)
from backend.app.schemas.invoice_item import LineItemCreate, LineItemRead, LineItemUpdate
from backend.app.schemas.payment import InvoicePaymentCreate, PaymentRead
from backend.app.schemas.split_billing import InvoiceStatements, SplitBillingUpdate
from backend.app.services.billing import get_invoice
from backend.app.services.invoice_builder import build_invoice, generate_invoices
from backend.app.services.invoices import (
    add_line_item,
    delete_line_item,
    list_invoices,
    update_invoice,
    update_line_item,
)
from backend.app.services.payments import apply_payment, void_invoice
from backend.app.services.split_billing import build_statements, set_split

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("/", response_model=List[InvoiceRead])
def list_all_invoices(
    status: str | None = None,
    family_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    return list_invoices(
        db,
        status=status,
        family_id=family_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )


@router.post("/", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    config: BillingConfig = Depends(get_billing_config),
    current_user: User = Depends(require_billing_manage),
):
    return build_invoice(
        db,
        family_id=payload.family_id,
        period_start=payload.period_start,
        period_end=payload.period_end,
        config=config,
        line_items=[item.model_dump() for item in payload.line_items],
        auto_price=payload.auto_price,
        due_date=payload.due_date,
        issued_date=payload.issued_date,
        tax_amount=payload.tax_amount,
        discount_amount=payload.discount_amount,
        notes=payload.notes,
    )


@router.post("/generate", response_model=InvoiceGenerateResponse)
def generate_batch(
    payload: InvoiceGenerateRequest,
    db: Session = Depends(get_db),
    config: BillingConfig = Depends(get_billing_config),
    current_user: User = Depends(require_billing_manage),
):
    result = generate_invoices(
        db,
        period_start=payload.period_start,
        period_end=payload.period_end,
        due_date=payload.due_date,
        config=config,
    )
    return {
        "generated": [InvoiceRead.model_validate(inv) for inv in result.generated],
        "skipped": result.skipped,
        "count": len(result.generated),
    }


@router.get("/{invoice_id}", response_model=InvoiceDetail)
def read_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_view),
):
    return get_invoice(db, invoice_id)


@router.patch("/{invoice_id}", response_model=InvoiceDetail)
def patch_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return update_invoice(
        db,
        invoice_id,
        payload.model_dump(exclude_unset=True),
        expected_version=payload.expected_version,
    )


@router.post("/{invoice_id}/void", response_model=InvoiceRead)
def void(
    invoice_id: int,
    payload: InvoiceVersion | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return void_invoice(db, invoice_id, expected_version=payload.expected_version if payload else None)


@router.post("/{invoice_id}/line-items", response_model=LineItemRead, status_code=status.HTTP_201_CREATED)
def create_line_item(
    invoice_id: int,
    payload: LineItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return add_line_item(db, invoice_id, payload.model_dump(), expected_version=payload.expected_version)


@router.patch("/{invoice_id}/line-items/{item_id}", response_model=LineItemRead)
def patch_line_item(
    invoice_id: int,
    item_id: int,
    payload: LineItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return update_line_item(
        db,
        invoice_id,
        item_id,
        payload.model_dump(exclude_unset=True),
        expected_version=payload.expected_version,
    )


@router.delete("/{invoice_id}/line-items/{item_id}", response_model=InvoiceDetail)
def remove_line_item(
    invoice_id: int,
    item_id: int,
    expected_version: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return delete_line_item(db, invoice_id, item_id, expected_version=expected_version)


@router.put("/{invoice_id}/split-billing", response_model=InvoiceRead)
def update_split_billing(
    invoice_id: int,
    payload: SplitBillingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return set_split(
        db,
        invoice_id,
        payload.split_billing_pct,
        payer_name=payload.split_billing_payer,
        payer_address=payload.split_billing_payer_address,
        expected_version=payload.expected_version,
    )


@router.get("/{invoice_id}/statements", response_model=InvoiceStatements)
def read_statements(
    invoice_id: int,
    db: Session = Depends(get_db),
    config: BillingConfig = Depends(get_billing_config),
    current_user: User = Depends(require_billing_view),
):
    invoice = get_invoice(db, invoice_id)
    statements = build_statements(invoice, config)
    return {"invoice_id": invoice.id, "statements": [asdict(statement) for statement in statements]}


@router.post("/{invoice_id}/payments", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
def create_payment_for_invoice(
    invoice_id: int,
    payload: InvoicePaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_billing_manage),
):
    return apply_payment(
        db,
        invoice_id,
        payload.amount,
        method=payload.method,
        payment_date=payload.payment_date,
        reference_number=payload.reference_number,
        notes=payload.notes,
        expected_version=payload.expected_version,
    )
