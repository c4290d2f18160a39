from datetime import date

import pytest
from fastapi.testclient import TestClient

from backend.app.core.security import create_access_token
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.child import Child
from backend.app.models.child_guardian import ChildGuardianLink
from backend.app.models.guardian import Guardian
from backend.app.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


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


def create_family() -> int:
    db = SessionLocal()
    try:
        guardian = Guardian(first_name="Ana", last_name="Diaz")
        db.add(guardian)
        db.flush()
        child = Child(
            first_name="Leo",
            last_name="Diaz",
            date_of_birth=date(2022, 5, 1),
            enrollment_date=date(2025, 1, 6),
            schedule_type="full_time",
        )
        db.add(child)
        db.flush()
        db.add(ChildGuardianLink(child_id=child.id, guardian_id=guardian.id))
        db.commit()
        return guardian.id
    finally:
        db.close()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def create_invoice(client: TestClient, token: str, family_id: int, unit_price: str = "300.00"):
    resp = client.post(
        "/invoices/",
        json={
            "family_id": family_id,
            "period_start": "2026-03-02",
            "period_end": "2026-03-06",
            "issued_date": "2026-03-01",
            "line_items": [{"description": "Tuition", "item_type": "tuition", "quantity": "1", "unit_price": unit_price}],
        },
        headers=auth(token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_invoice_returns_money_as_strings():
    client = TestClient(app)
    token = create_user_token("manager@example.com", billing_manage=True)
    family_id = create_family()

    data = create_invoice(client, token, family_id)
    assert data["invoice_number"] == "DD-000001"
    assert data["subtotal"] == "300.00"
    assert data["total"] == "300.00"
    assert data["balance_due"] == "300.00"
    assert data["amount_paid"] == "0.00"
    assert data["status"] == "pending"
    assert data["due_date"] == "2026-03-08"
    assert data["version"] == 1
    assert data["line_items"][0]["total"] == "300.00"

    detail = client.get(f"/invoices/{data['id']}", headers=auth(token))
    assert detail.status_code == 200
    assert detail.json()["invoice_number"] == "DD-000001"


def test_float_style_sub_cent_amount_is_a_validation_error():
    client = TestClient(app)
    token = create_user_token("manager@example.com", billing_manage=True)
    family_id = create_family()
    resp = client.post(
        "/invoices/",
        json={
            "family_id": family_id,
            "period_start": "2026-03-02",
            "period_end": "2026-03-06",
            "line_items": [{"description": "Tuition", "unit_price": "300.005"}],
        },
        headers=auth(token),
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "validation_error"


def test_missing_fee_tier_is_validation_error_envelope():
    client = TestClient(app)
    token = create_user_token("manager@example.com", billing_manage=True)
    family_id = create_family()
    resp = client.post(
        "/invoices/",
        json={"family_id": family_id, "period_start": "2026-03-02", "period_end": "2026-03-06", "auto_price": True},
        headers=auth(token),
    )
    assert resp.status_code == 422
    body = resp.json()["error"]
    assert body["code"] == "validation_error"
    assert body["details"]["age_group"] == "preschool"


def test_unknown_invoice_is_not_found():
    client = TestClient(app)
    token = create_user_token("viewer@example.com", billing_view=True)
    resp = client.get("/invoices/4242", headers=auth(token))
    assert resp.status_code == 404
    assert resp.json() == {"error": {"code": "not_found", "message": "Invoice 4242 not found", "details": {"entity": "Invoice", "id": 4242}}}


def test_view_permission_cannot_write():
    client = TestClient(app)
    viewer = create_user_token("viewer@example.com", billing_view=True)
    family_id = create_family()
    resp = client.post(
        "/invoices/",
        json={"family_id": family_id, "period_start": "2026-03-02", "period_end": "2026-03-06", "line_items": []},
        headers=auth(viewer),
    )
    assert resp.status_code == 403
    assert resp.json() == {"error": {"code": "forbidden", "message": "billing_manage permission required"}}
    assert client.get("/invoices/", headers=auth(viewer)).status_code == 200


def test_unauthenticated_and_inactive_users_are_rejected():
    client = TestClient(app)
    assert client.get("/invoices/").status_code in (401, 403)
    inactive = create_user_token("gone@example.com", billing_manage=True, is_active=False)
    assert client.get("/invoices/", headers=auth(inactive)).status_code == 401
    rejected = client.get("/invoices/", headers=auth("not-a-token"))
    assert rejected.status_code == 401
    assert rejected.headers["WWW-Authenticate"] == "Bearer"
    assert rejected.json() == {"error": {"code": "unauthorized", "message": "Could not validate credentials"}}


def test_line_item_routes_and_version_conflict():
    client = TestClient(app)
    token = create_user_token("manager@example.com", billing_manage=True)
    invoice = create_invoice(client, token, create_family())

    added = client.post(
        f"/invoices/{invoice['id']}/line-items",
        json={"description": "Field trip", "item_type": "activity_fee", "unit_price": "20.00", "expected_version": 1},
        headers=auth(token),
    )
    assert added.status_code == 201
    item_id = added.json()["id"]

    stale = client.patch(
        f"/invoices/{invoice['id']}/line-items/{item_id}",
        json={"unit_price": "25.00", "expected_version": 1},
        headers=auth(token),
    )
    assert stale.status_code == 409
    assert stale.json()["error"]["code"] == "concurrency_conflict"

    patched = client.patch(
        f"/invoices/{invoice['id']}/line-items/{item_id}",
        json={"unit_price": "25.00", "expected_version": 2},
        headers=auth(token),
    )
    assert patched.status_code == 200
    assert patched.json()["total"] == "25.00"

    removed = client.delete(f"/invoices/{invoice['id']}/line-items/{item_id}", headers=auth(token))
    assert removed.status_code == 200
    assert removed.json()["total"] == "300.00"
    assert len(removed.json()["line_items"]) == 1


def test_patch_invoice_updates_tax_and_notes():
    client = TestClient(app)
    token = create_user_token("manager@example.com", billing_manage=True)
    invoice = create_invoice(client, token, create_family())
    resp = client.patch(
        f"/invoices/{invoice['id']}",
        json={"tax_amount": "6.00", "notes": "Includes snack fee", "expected_version": invoice["version"]},
        headers=auth(token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == "306.00"
    assert data["notes"] == "Includes snack fee"


def test_void_then_pay_is_invalid_state():
    client = TestClient(app)
    token = create_user_token("manager@example.com", billing_manage=True)
    invoice = create_invoice(client, token, create_family())

    voided = client.post(f"/invoices/{invoice['id']}/void", headers=auth(token))
    assert voided.status_code == 200
    assert voided.json()["status"] == "void"

    pay = client.post(f"/invoices/{invoice['id']}/payments", json={"amount": "10.00"}, headers=auth(token))
    assert pay.status_code == 409
    assert pay.json()["error"]["code"] == "invalid_state"

    again = client.post(f"/invoices/{invoice['id']}/void", headers=auth(token))
    assert again.status_code == 409


def test_split_billing_statements():
    client = TestClient(app)
    token = create_user_token("manager@example.com", billing_manage=True)
    invoice = create_invoice(client, token, create_family())

    resp = client.put(
        f"/invoices/{invoice['id']}/split-billing",
        json={"split_billing_pct": 70, "split_billing_payer": "County Subsidy Office"},
        headers=auth(token),
    )
    assert resp.status_code == 200
    assert resp.json()["split_billing_pct"] == 70

    statements = client.get(f"/invoices/{invoice['id']}/statements", headers=auth(token))
    assert statements.status_code == 200
    parent, third_party = statements.json()["statements"]
    assert parent["kind"] == "split_parent"
    assert parent["portion_total"] == "210.00"
    assert parent["header"]["invoice_number"] == "DD-000001"
    assert third_party["kind"] == "split_third_party"
    assert third_party["amount_due"] == "90.00"

    missing_payer = client.put(
        f"/invoices/{invoice['id']}/split-billing",
        json={"split_billing_pct": 50},
        headers=auth(token),
    )
    assert missing_payer.status_code == 422


def test_generate_batch_endpoint():
    client = TestClient(app)
    token = create_user_token("admin@example.com", is_admin=True)
    family_id = create_family()
    tier = client.post(
        "/fee-tiers/",
        json={
            "name": "Preschool Full Time",
            "age_group": "preschool",
            "schedule_type": "full_time",
            "weekly_rate": "250.00",
            "effective_date": "2026-01-01",
        },
        headers=auth(token),
    )
    assert tier.status_code == 201

    body = {"period_start": "2026-03-02", "period_end": "2026-03-06"}
    first = client.post("/invoices/generate", json=body, headers=auth(token))
    assert first.status_code == 200
    assert first.json()["count"] == 1
    assert first.json()["generated"][0]["family_id"] == family_id
    assert first.json()["generated"][0]["total"] == "250.00"

    second = client.post("/invoices/generate", json=body, headers=auth(token))
    assert second.json()["count"] == 0
    assert second.json()["skipped"][0]["family_id"] == family_id


def test_list_invoices_filters_by_status():
    client = TestClient(app)
    token = create_user_token("manager@example.com", billing_manage=True)
    family_id = create_family()
    first = create_invoice(client, token, family_id)
    create_invoice(client, token, family_id)
    client.post(f"/invoices/{first['id']}/payments", json={"amount": "300.00"}, headers=auth(token))

    paid = client.get("/invoices/", params={"status": "paid"}, headers=auth(token))
    assert [inv["id"] for inv in paid.json()] == [first["id"]]
    bad = client.get("/invoices/", params={"status": "bogus"}, headers=auth(token))
    assert bad.status_code == 422
