from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from backend.app.core.errors import ValidationError
from backend.app.core.security import create_access_token
from backend.app.core.settings import BillingConfig
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.guardian import Guardian
from backend.app.models.user import User
from backend.app.services import revenue_reporting
from backend.app.services.invoice_builder import build_invoice
from backend.app.services.payments import apply_payment, void_invoice
from backend.app.services.revenue_reporting import (
    compute_financial_summary,
    financial_invoices,
    financial_payments,
    report_range,
)

START = date(2026, 2, 1)
END = date(2026, 3, 31)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def issue(db, family, amount, issued, due_in_days=7):
    return build_invoice(
        db,
        family_id=family.id,
        period_start=issued,
        period_end=issued + timedelta(days=4),
        config=BillingConfig(),
        issued_date=issued,
        due_date=issued + timedelta(days=due_in_days),
        line_items=[{"description": "Tuition", "item_type": "tuition", "quantity": "1", "unit_price": amount}],
    )


def seed_ledger(db):
    """Paid in February; partial, pending and void in March; one invoice outside the range."""
    diaz = Guardian(first_name="Ana", last_name="Diaz")
    ruiz = Guardian(first_name="Luis", last_name="Ruiz")
    db.add_all([diaz, ruiz])
    db.commit()

    paid = issue(db, diaz, "300.00", date(2026, 2, 10))
    apply_payment(db, paid.id, "300.00", method="check", payment_date=date(2026, 2, 12))
    partial = issue(db, ruiz, "200.00", date(2026, 3, 5))
    apply_payment(db, partial.id, "50.00", method="cash", payment_date=date(2026, 3, 6))
    pending = issue(db, diaz, "100.00", date(2026, 3, 20), due_in_days=31)
    voided = issue(db, ruiz, "80.00", date(2026, 3, 21))
    void_invoice(db, voided.id)
    later = issue(db, diaz, "999.00", date(2026, 4, 2))
    apply_payment(db, later.id, "999.00", method="ach", payment_date=date(2026, 4, 3))
    return {"paid": paid.id, "partial": partial.id, "pending": pending.id, "void": voided.id}


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


def test_summary_totals_exclude_void_and_out_of_range_invoices():
    db = SessionLocal()
    try:
        seed_ledger(db)
        summary = compute_financial_summary(db, START, END, as_of=END)

        assert summary.total_billed == Decimal("600.00")
        assert summary.total_collected == Decimal("350.00")
        assert summary.total_outstanding == Decimal("250.00")
        assert summary.total_billed == summary.total_collected + summary.total_outstanding
        assert summary.status_counts == {"pending": 1, "partial": 0, "overdue": 1, "paid": 1, "void": 1}
    finally:
        db.close()


def test_summary_breaks_down_methods_and_months():
    db = SessionLocal()
    try:
        seed_ledger(db)
        summary = compute_financial_summary(db, START, END, as_of=END)

        assert [(m.method, m.count, m.total) for m in summary.payments_by_method] == [
            ("check", 1, Decimal("300.00")),
            ("cash", 1, Decimal("50.00")),
        ]
        assert [(m.month, m.billed, m.collected) for m in summary.monthly_trend] == [
            ("2026-02", Decimal("300.00"), Decimal("300.00")),
            ("2026-03", Decimal("300.00"), Decimal("50.00")),
        ]
    finally:
        db.close()


def test_range_defaults_to_month_to_date(monkeypatch):
    monkeypatch.setattr(revenue_reporting, "utc_today", lambda: date(2026, 3, 18))
    assert report_range(None, None) == (date(2026, 3, 1), date(2026, 3, 18))
    assert report_range(date(2026, 1, 1), None) == (date(2026, 1, 1), date(2026, 3, 18))
    with pytest.raises(ValidationError):
        report_range(date(2026, 4, 1), date(2026, 3, 1))


@pytest.mark.parametrize(
    "status,expected",
    [
        ("all", ["pending", "partial", "paid"]),
        ("billed", ["pending", "partial", "paid"]),
        ("collected", ["partial", "paid"]),
        ("outstanding", ["pending", "partial"]),
        ("overdue", ["partial"]),
        ("pending", ["pending"]),
        ("partial", []),
        ("void", ["void"]),
    ],
)
def test_invoice_drill_down_matches_summary_figures(status, expected):
    db = SessionLocal()
    try:
        ids = seed_ledger(db)
        rows = financial_invoices(db, START, END, status=status, as_of=END)
        assert [inv.id for inv in rows] == [ids[name] for name in expected]
    finally:
        db.close()


def test_payment_drill_down_filters_by_method():
    db = SessionLocal()
    try:
        seed_ledger(db)
        assert [p.method for p in financial_payments(db, START, END)] == ["cash", "check"]
        assert [p.amount for p in financial_payments(db, START, END, method="check")] == [Decimal("300.00")]
        assert len(financial_payments(db, START, END, method="all")) == 2
        with pytest.raises(ValidationError):
            financial_invoices(db, START, END, status="written_off")
    finally:
        db.close()


def test_financial_routes():
    client = TestClient(app)
    token = create_user_token("viewer@example.com", billing_view=True)
    db = SessionLocal()
    try:
        seed_ledger(db)
    finally:
        db.close()
    params = {"start_date": START.isoformat(), "end_date": END.isoformat()}

    resp = client.get("/reports/financial", params=params, headers=auth(token))
    assert resp.status_code == 200
    data = resp.json()
    assert (data["total_billed"], data["total_collected"], data["total_outstanding"]) == ("600.00", "350.00", "250.00")
    assert data["payments_by_method"][0] == {"method": "check", "count": 1, "total": "300.00"}
    assert [row["month"] for row in data["monthly_trend"]] == ["2026-02", "2026-03"]
    assert data["status_counts"]["void"] == 1

    outstanding = client.get(
        "/reports/financial/invoices", params={**params, "status": "outstanding"}, headers=auth(token)
    )
    assert [row["balance_due"] for row in outstanding.json()] == ["100.00", "150.00"]
    assert outstanding.json()[1]["family_name"] == "Luis Ruiz"

    payments = client.get("/reports/financial/payments", params={**params, "method": "cash"}, headers=auth(token))
    assert payments.json() == [
        {
            "id": payments.json()[0]["id"],
            "payment_date": "2026-03-06",
            "amount": "50.00",
            "method": "cash",
            "reference_number": None,
            "notes": None,
            "family_id": payments.json()[0]["family_id"],
            "family_name": "Luis Ruiz",
            "invoice_id": payments.json()[0]["invoice_id"],
            "invoice_number": "DD-000002",
        }
    ]

    inverted = client.get(
        "/reports/financial", params={"start_date": "2026-04-01", "end_date": "2026-03-01"}, headers=auth(token)
    )
    assert inverted.status_code == 422
    assert inverted.json()["error"]["code"] == "validation_error"


def test_financial_report_needs_view_permission():
    client = TestClient(app)
    nobody = create_user_token("nobody@example.com")
    resp = client.get("/reports/financial", headers=auth(nobody))
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "forbidden"
