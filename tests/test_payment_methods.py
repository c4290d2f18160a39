from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from backend.app.core.errors import NotFoundError, ValidationError
from backend.app.core.security import create_access_token
from backend.app.core.settings import BillingConfig
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.guardian import Guardian
from backend.app.models.payment_method import DEFAULT_PAYMENT_METHODS, PaymentMethod
from backend.app.models.user import User
from backend.app.services.invoice_builder import build_invoice
from backend.app.services.payment_methods import (
    create_payment_method,
    list_payment_methods,
    update_payment_method,
)
from backend.app.services.payments import apply_payment


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def create_invoice(db):
    guardian = Guardian(first_name="Ana", last_name="Diaz")
    db.add(guardian)
    db.commit()
    return build_invoice(
        db,
        family_id=guardian.id,
        period_start=date(2026, 3, 2),
        period_end=date(2026, 3, 6),
        config=BillingConfig(),
        line_items=[{"description": "Tuition", "item_type": "tuition", "quantity": "1", "unit_price": "300.00"}],
    )


def method_by_code(db, code):
    return db.query(PaymentMethod).filter(PaymentMethod.code == code).one()


def create_user_token(email: str, **permissions) -> str:
    db = SessionLocal()
    try:
        user = User(email=email, **permissions)
        db.add(user)
        db.commit()
        db.refresh(user)
        return create_access_token(user.id)
    finally:
        db.close()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_new_database_is_seeded_with_default_methods():
    db = SessionLocal()
    try:
        methods = list_payment_methods(db)
        assert sorted(m.code for m in methods) == sorted(code for code, _ in DEFAULT_PAYMENT_METHODS)
        assert [m.name for m in methods] == sorted(m.name for m in methods)
    finally:
        db.close()


def test_create_derives_code_and_rejects_duplicates():
    db = SessionLocal()
    try:
        method = create_payment_method(db, {"name": "  Gift Card "})
        assert (method.code, method.name, method.is_active) == ("gift_card", "Gift Card", True)

        with pytest.raises(ValidationError):
            create_payment_method(db, {"name": "Gift card"})
        with pytest.raises(ValidationError):
            create_payment_method(db, {"name": "Wire", "code": "Wire Transfer"})
        with pytest.raises(ValidationError):
            create_payment_method(db, {"name": "   "})

        invoice = create_invoice(db)
        payment = apply_payment(db, invoice.id, "25.00", method="gift_card")
        assert payment.method == "gift_card"
    finally:
        db.close()


def test_inactive_method_cannot_take_payments():
    db = SessionLocal()
    try:
        invoice = create_invoice(db)
        venmo = method_by_code(db, "venmo")
        apply_payment(db, invoice.id, "20.00", method="venmo")

        update_payment_method(db, venmo.id, {"is_active": False})
        assert "venmo" not in [m.code for m in list_payment_methods(db)]
        assert "venmo" in [m.code for m in list_payment_methods(db, include_inactive=True)]

        with pytest.raises(ValidationError):
            apply_payment(db, invoice.id, "20.00", method="venmo")
        with pytest.raises(ValidationError):
            apply_payment(db, invoice.id, "20.00", method="bitcoin")
        db.refresh(invoice)
        assert invoice.amount_paid == Decimal("20.00")
        assert len(invoice.payments) == 1

        update_payment_method(db, venmo.id, {"is_active": True})
        apply_payment(db, invoice.id, "20.00", method="venmo")
        db.refresh(invoice)
        assert invoice.amount_paid == Decimal("40.00")
    finally:
        db.close()


def test_rename_keeps_code_on_recorded_payments():
    db = SessionLocal()
    try:
        invoice = create_invoice(db)
        ach = method_by_code(db, "ach")
        payment = apply_payment(db, invoice.id, "50.00", method="ach")

        renamed = update_payment_method(db, ach.id, {"name": "Bank Transfer"})
        assert (renamed.code, renamed.name) == ("ach", "Bank Transfer")
        db.refresh(payment)
        assert payment.method == "ach"

        with pytest.raises(ValidationError):
            update_payment_method(db, ach.id, {"name": ""})
        with pytest.raises(NotFoundError):
            update_payment_method(db, 9999, {"name": "Ghost"})
    finally:
        db.close()


def test_payment_method_routes():
    client = TestClient(app)
    manager = create_user_token("manager@example.com", billing_manage=True)
    viewer = create_user_token("viewer@example.com", billing_view=True)

    listing = client.get("/payment-methods/", headers=auth(viewer))
    assert listing.status_code == 200
    assert len(listing.json()) == len(DEFAULT_PAYMENT_METHODS)

    denied = client.post("/payment-methods/", json={"name": "Crypto"}, headers=auth(viewer))
    assert denied.status_code == 403
    assert denied.json()["error"]["code"] == "forbidden"

    created = client.post("/payment-methods/", json={"name": "Employer Voucher"}, headers=auth(manager))
    assert created.status_code == 201
    method = created.json()
    assert method["code"] == "employer_voucher"

    duplicate = client.post("/payment-methods/", json={"name": "Employer Voucher"}, headers=auth(manager))
    assert duplicate.status_code == 422
    assert duplicate.json()["error"]["code"] == "validation_error"

    retired = client.patch(f"/payment-methods/{method['id']}", json={"is_active": False}, headers=auth(manager))
    assert retired.json()["is_active"] is False
    active_codes = [m["code"] for m in client.get("/payment-methods/", headers=auth(viewer)).json()]
    all_codes = [m["code"] for m in client.get("/payment-methods/all", headers=auth(viewer)).json()]
    assert "employer_voucher" not in active_codes
    assert "employer_voucher" in all_codes

    missing = client.patch("/payment-methods/9999", json={"name": "x"}, headers=auth(manager))
    assert missing.status_code == 404


def test_payment_route_rejects_retired_method():
    client = TestClient(app)
    manager = create_user_token("manager@example.com", billing_manage=True)
    db = SessionLocal()
    try:
        invoice_id = create_invoice(db).id
        check_id = method_by_code(db, "check").id
    finally:
        db.close()

    client.patch(f"/payment-methods/{check_id}", json={"is_active": False}, headers=auth(manager))
    resp = client.post(
        "/payments/",
        json={"invoice_id": invoice_id, "amount": "10.00", "method": "check"},
        headers=auth(manager),
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["details"]["field"] == "method"
