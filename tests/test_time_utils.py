from datetime import UTC, date, timedelta

import pytest

from backend.app.core.settings import BillingConfig
from backend.app.core.time import utc_now, utc_today
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.models.guardian import Guardian
from backend.app.services import aging_reporting, invoice_builder
from backend.app.services.invoice_builder import build_invoice


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def test_utc_helpers_agree():
    now = utc_now()
    assert now.tzinfo is UTC
    assert utc_today() in (now.date(), now.date() + timedelta(days=1))


def test_invoice_issued_today_when_no_date_given(monkeypatch):
    monkeypatch.setattr(invoice_builder, "utc_today", lambda: date(2026, 3, 1))
    db = SessionLocal()
    try:
        guardian = Guardian(first_name="Ana", last_name="Diaz")
        db.add(guardian)
        db.commit()
        invoice = build_invoice(
            db,
            family_id=guardian.id,
            period_start=date(2026, 3, 2),
            period_end=date(2026, 3, 6),
            config=BillingConfig(due_date_days=10),
            line_items=[{"description": "Tuition", "item_type": "tuition", "quantity": "1", "unit_price": "300.00"}],
        )
        assert invoice.issued_date == date(2026, 3, 1)
        assert invoice.due_date == date(2026, 3, 11)
    finally:
        db.close()


def test_aging_defaults_to_today(monkeypatch):
    monkeypatch.setattr(aging_reporting, "utc_today", lambda: date(2026, 4, 30))
    db = SessionLocal()
    try:
        report = aging_reporting.compute_aging(db)
        assert report.as_of == date(2026, 4, 30)
    finally:
        db.close()
