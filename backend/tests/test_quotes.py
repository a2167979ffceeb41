"""Tests for quote creation, numbering, payments, lifecycle and endpoints."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from backend.app.models.audit import AuditLog
from backend.app.models.quotes import (
    PaymentHistory,
    PaymentStatus,
    PaymentType,
    QuoteNumberCounter,
    QuoteRequest,
)
from backend.app.repositories.base import QuoteFilters
from backend.app.schemas.quotes import PaymentCreate, QuoteRequestCreate, QuoteRequestUpdate
from backend.app.services import quotes as quote_service
from backend.app.services.quotes import (
    create_quote,
    delete_quote,
    get_quote,
    get_quote_by_number,
    list_payments,
    list_quotes,
    quote_summary,
    record_payment,
    transition_quote,
    update_quote,
)
from backend.tests.conftest import quote_payload

FEB_2025 = datetime(2025, 2, 10, 9, 30, tzinfo=timezone.utc)


def _create(db: Session, config: dict, *, now: datetime = FEB_2025, **customer) -> dict:
    return create_quote(
        db, QuoteRequestCreate.model_validate(quote_payload(config["id"], **customer)), now=now
    )


def _pay(db: Session, quote: dict, payment_type: PaymentType, amount: str) -> dict:
    return record_payment(
        db,
        UUID(quote["id"]),
        PaymentCreate(payment_type=payment_type, amount=Decimal(amount)),
    )


def _move(db: Session, quote: dict, target: PaymentStatus) -> dict:
    return transition_quote(db, UUID(quote["id"]), target)


def _reset_counter(db: Session, epoch: str) -> None:
    db.execute(
        update(QuoteNumberCounter)
        .where(QuoteNumberCounter.epoch == epoch)
        .values(last_value=0)
    )
    db.commit()


# ─── Create ──────────────────────────────────────────────────────────────────


class TestCreateQuote:
    def test_numbered_from_quarter(self, db: Session, stored_configuration: dict) -> None:
        first = _create(db, stored_configuration)
        second = _create(db, stored_configuration)
        assert first["quote_number"] == "Q1-2025-00001"
        assert second["quote_number"] == "Q1-2025-00002"

    def test_new_quarter_restarts_numbering(
        self, db: Session, stored_configuration: dict
    ) -> None:
        _create(db, stored_configuration)
        april = _create(db, stored_configuration, now=datetime(2025, 4, 1, tzinfo=timezone.utc))
        assert april["quote_number"] == "Q2-2025-00001"

    def test_initial_state(self, db: Session, stored_configuration: dict) -> None:
        quote = _create(db, stored_configuration)
        assert quote["payment"]["status"] == "pre-quote"
        assert Decimal(quote["payment"]["total_paid"]) == 0
        assert quote["payment"]["total_due"] == "21682.44"
        assert quote["payment"]["balance_due"] == "21682.44"
        assert quote["payment"]["history"] == []
        assert quote["estimate"]["total_inc_vat"] == "21682.44"

    def test_retention_window(self, db: Session, stored_configuration: dict) -> None:
        quote = _create(db, stored_configuration)
        submitted = datetime.fromisoformat(quote["submitted_at"])
        expires = datetime.fromisoformat(quote["retention_expires_at"])
        assert expires - submitted == timedelta(days=settings.QUOTE_RETENTION_DAYS)

    def test_customer_is_normalised(self, db: Session, stored_configuration: dict) -> None:
        quote = _create(
            db, stored_configuration, email="Aoife.Byrne@Example.IE", eircode="d06f2x4", county="dublin"
        )
        assert quote["customer"]["email"] == "aoife.byrne@example.ie"
        assert quote["customer"]["eircode"] == "D06 F2X4"
        assert quote["customer"]["county"] == "Dublin"

    def test_invalid_customer(self, db: Session, stored_configuration: dict) -> None:
        with pytest.raises(ValidationError) as exc:
            _create(db, stored_configuration, county="Kildare")
        assert exc.value.errors[0].code == "EIRCODE_COUNTY_MISMATCH"
        assert db.query(QuoteRequest).count() == 0

    def test_unknown_configuration(self, db: Session) -> None:
        with pytest.raises(NotFoundError):
            _create(db, {"id": str(uuid4())})

    def test_collision_takes_next_number(self, db: Session, stored_configuration: dict) -> None:
        _create(db, stored_configuration)
        _reset_counter(db, "Q1-2025")
        retried = _create(db, stored_configuration)
        assert retried["quote_number"] == "Q1-2025-00002"

    def test_gives_up_after_max_attempts(
        self, db: Session, stored_configuration: dict, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "QUOTE_NUMBER_MAX_ATTEMPTS", 2)
        _create(db, stored_configuration)
        _create(db, stored_configuration)
        _reset_counter(db, "Q1-2025")

        with pytest.raises(ConflictError) as exc:
            _create(db, stored_configuration)
        assert exc.value.code == "QUOTE_NUMBER_EXHAUSTED"
        assert db.query(QuoteRequest).count() == 2

    def test_audit_row_written(self, db: Session, stored_quote: dict) -> None:
        entry = db.query(AuditLog).filter(AuditLog.action == "QUOTE_CREATED").one()
        assert entry.record_id == stored_quote["quote_number"]
        assert entry.new_values["total_inc_vat"] == "21682.44"


# ─── Read ────────────────────────────────────────────────────────────────────


class TestReadQuotes:
    def test_get_and_by_number(self, db: Session, stored_quote: dict) -> None:
        assert get_quote(db, UUID(stored_quote["id"]))["quote_number"] == stored_quote["quote_number"]
        by_number = get_quote_by_number(db, stored_quote["quote_number"].lower())
        assert by_number["id"] == stored_quote["id"]

    def test_by_number_missing(self, db: Session) -> None:
        with pytest.raises(NotFoundError):
            get_quote_by_number(db, "Q1-2020-00001")

    def test_list_filters(self, db: Session, stored_configuration: dict) -> None:
        first = _create(db, stored_configuration)
        _create(db, stored_configuration, email="ciaran@example.ie")
        _move(db, first, PaymentStatus.QUOTED)

        quoted = list_quotes(db, filters=QuoteFilters(status=PaymentStatus.QUOTED))
        assert [q["id"] for q in quoted["items"]] == [first["id"]]

        by_email = list_quotes(db, filters=QuoteFilters(customer_email="CIARAN@example.ie"))
        assert by_email["pagination"]["total"] == 1

        everything = list_quotes(db, limit=1)
        assert everything["pagination"]["total"] == 2
        assert everything["items"][0]["quote_number"] == "Q1-2025-00002"

    def test_summary(self, db: Session, stored_configuration: dict) -> None:
        kept = _create(db, stored_configuration)
        dropped = _create(db, stored_configuration)
        _move(db, dropped, PaymentStatus.CANCELLED)
        _move(db, kept, PaymentStatus.QUOTED)
        _pay(db, kept, PaymentType.DEPOSIT, "1000")

        summary = quote_summary(db)
        assert summary["total_quotes"] == 2
        assert summary["by_status"]["quoted"] == 1
        assert summary["by_status"]["cancelled"] == 1
        assert summary["by_status"]["pre-quote"] == 0
        assert summary["total_value_inc_vat"] == "21682.44"
        assert summary["total_paid"] == "1000.00"

    def test_summary_filters(self, db: Session, stored_configuration: dict) -> None:
        _create(db, stored_configuration)
        other = _create(db, stored_configuration, email="ciaran@example.ie")
        _move(db, other, PaymentStatus.QUOTED)
        _pay(db, other, PaymentType.DEPOSIT, "500")

        summary = quote_summary(db, filters=QuoteFilters(customer_email="ciaran@example.ie"))
        assert summary["total_quotes"] == 1
        assert summary["by_status"]["quoted"] == 1
        assert summary["by_status"]["pre-quote"] == 0
        assert summary["total_value_inc_vat"] == "21682.44"
        assert summary["total_paid"] == "500.00"

        assert quote_summary(db)["total_value_inc_vat"] == "43364.88"

    def test_summary_reads_through_repository(
        self, db: Session, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        seen: list[QuoteFilters] = []

        class FakeQuoteRepository:
            def status_counts(self, filters: QuoteFilters) -> list[tuple[str, int]]:
                seen.append(filters)
                return [("quoted", 3), ("completed", 1)]

            def totals(
                self, statuses: list[PaymentStatus], filters: QuoteFilters
            ) -> tuple[Decimal, Decimal]:
                assert PaymentStatus.CANCELLED not in statuses
                seen.append(filters)
                return Decimal("1234.565"), Decimal("250")

        monkeypatch.setattr(quote_service, "quote_repository", lambda _db: FakeQuoteRepository())
        filters = QuoteFilters(status=PaymentStatus.QUOTED)

        summary = quote_summary(db, filters=filters)
        assert summary["total_quotes"] == 4
        assert summary["by_status"]["cancelled"] == 0
        assert summary["total_value_inc_vat"] == "1234.57"
        assert summary["total_paid"] == "250.00"
        assert seen == [filters, filters]


# ─── Update / delete ─────────────────────────────────────────────────────────


class TestUpdateQuote:
    def test_correct_customer(self, db: Session, stored_quote: dict) -> None:
        updated = update_quote(
            db,
            UUID(stored_quote["id"]),
            QuoteRequestUpdate.model_validate(
                {"customer": {"email": "New@Example.ie", "phone": {"number": "861112223"}}}
            ),
        )
        assert updated["customer"]["email"] == "new@example.ie"
        assert updated["customer"]["phone"] == {"country_prefix": "+353", "number": "861112223"}
        assert updated["customer"]["first_name"] == "Aoife"

    def test_merged_customer_is_revalidated(self, db: Session, stored_quote: dict) -> None:
        with pytest.raises(ValidationError) as exc:
            update_quote(
                db,
                UUID(stored_quote["id"]),
                QuoteRequestUpdate.model_validate({"customer": {"county": "Kildare"}}),
            )
        assert exc.value.errors[0].code == "EIRCODE_COUNTY_MISMATCH"

    def test_null_county_does_not_clear_it(self, db: Session, stored_quote: dict) -> None:
        updated = update_quote(
            db,
            UUID(stored_quote["id"]),
            QuoteRequestUpdate.model_validate({"customer": {"county": None, "town": "Ranelagh"}}),
        )
        assert updated["customer"]["county"] == "Dublin"
        assert updated["customer"]["town"] == "Ranelagh"

    def test_scheduling_fields(self, db: Session, stored_quote: dict) -> None:
        updated = update_quote(
            db,
            UUID(stored_quote["id"]),
            QuoteRequestUpdate(desired_install_timeframe="Spring", expected_installments=3),
        )
        assert updated["desired_install_timeframe"] == "Spring"
        assert updated["payment"]["expected_installments"] == 3


class TestDeleteQuote:
    def test_pre_quote_can_be_deleted(self, db: Session, stored_quote: dict) -> None:
        delete_quote(db, UUID(stored_quote["id"]))
        assert db.query(QuoteRequest).count() == 0

    def test_later_states_need_force(self, db: Session, stored_quote: dict) -> None:
        _move(db, stored_quote, PaymentStatus.QUOTED)
        _pay(db, stored_quote, PaymentType.DEPOSIT, "500")

        with pytest.raises(ConflictError) as exc:
            delete_quote(db, UUID(stored_quote["id"]))
        assert exc.value.code == "QUOTE_NOT_DELETABLE"

        delete_quote(db, UUID(stored_quote["id"]), force=True, actor="admin")
        assert db.query(QuoteRequest).count() == 0
        assert db.query(PaymentHistory).count() == 0
        entry = db.query(AuditLog).filter(AuditLog.action == "QUOTE_DELETED").one()
        assert entry.old_values == {"status": "quoted"}
        assert entry.new_values == {"forced": True}


# ─── Lifecycle ───────────────────────────────────────────────────────────────


class TestQuoteLifecycle:
    def test_full_payment_path(self, db: Session, stored_quote: dict) -> None:
        _move(db, stored_quote, PaymentStatus.QUOTED)
        _pay(db, stored_quote, PaymentType.DEPOSIT, "5000")
        _move(db, stored_quote, PaymentStatus.DEPOSIT_PAID)
        _move(db, stored_quote, PaymentStatus.IN_PRODUCTION)

        with pytest.raises(InvalidTransitionError):
            _move(db, stored_quote, PaymentStatus.COMPLETED)

        recorded = _pay(db, stored_quote, PaymentType.FINAL, "16682.44")
        assert recorded["warnings"] == []
        assert recorded["payment"]["sequence"] == 2
        done = _move(db, stored_quote, PaymentStatus.COMPLETED)

        assert done["payment"]["status"] == "completed"
        assert done["payment"]["total_paid"] == "21682.44"
        assert done["payment"]["balance_due"] == "0.00"
        assert [p["payment_type"] for p in done["payment"]["history"]] == ["DEPOSIT", "FINAL"]

    def test_refund_path(self, db: Session, stored_quote: dict) -> None:
        _move(db, stored_quote, PaymentStatus.QUOTED)
        _pay(db, stored_quote, PaymentType.DEPOSIT, "5000")
        _move(db, stored_quote, PaymentStatus.DEPOSIT_PAID)

        with pytest.raises(InvalidTransitionError):
            _move(db, stored_quote, PaymentStatus.REFUNDED)

        _pay(db, stored_quote, PaymentType.REFUND, "5000")
        refunded = _move(db, stored_quote, PaymentStatus.REFUNDED)
        assert Decimal(refunded["payment"]["total_paid"]) == 0

        with pytest.raises(ConflictError) as exc:
            _pay(db, stored_quote, PaymentType.DEPOSIT, "1")
        assert exc.value.code == "QUOTE_CLOSED"

    def test_deposit_required_before_deposit_paid(self, db: Session, stored_quote: dict) -> None:
        _move(db, stored_quote, PaymentStatus.QUOTED)
        with pytest.raises(InvalidTransitionError):
            _move(db, stored_quote, PaymentStatus.DEPOSIT_PAID)
        assert get_quote(db, UUID(stored_quote["id"]))["payment"]["status"] == "quoted"

    def test_transition_is_audited(self, db: Session, stored_quote: dict) -> None:
        transition_quote(
            db, UUID(stored_quote["id"]), PaymentStatus.QUOTED, note="sent", actor="sales"
        )
        entry = db.query(AuditLog).filter(AuditLog.action == "QUOTE_STATUS_CHANGED").one()
        assert entry.old_values == {"status": "pre-quote"}
        assert entry.new_values == {"status": "quoted", "note": "sent"}
        assert entry.changed_by == "sales"


class TestPayments:
    def test_overpayment_is_accepted_with_warning(self, db: Session, stored_quote: dict) -> None:
        recorded = _pay(db, stored_quote, PaymentType.DEPOSIT, "30000")
        assert [w["code"] for w in recorded["warnings"]] == ["OVERPAYMENT_WARNING"]
        assert recorded["quote"]["payment"]["total_paid"] == "30000.00"
        assert recorded["quote"]["payment"]["balance_due"] == "0.00"

    def test_debit_cannot_exceed_total_paid(self, db: Session, stored_quote: dict) -> None:
        _pay(db, stored_quote, PaymentType.DEPOSIT, "100")
        with pytest.raises(ValidationError) as exc:
            _pay(db, stored_quote, PaymentType.ADJUSTMENT, "150")
        assert exc.value.errors[0].code == "INVALID_AMOUNT"
        assert len(list_payments(db, UUID(stored_quote["id"]))) == 1

    def test_non_positive_amount(self, db: Session, stored_quote: dict) -> None:
        with pytest.raises(ValidationError):
            _pay(db, stored_quote, PaymentType.DEPOSIT, "-5")

    def test_cancelled_quote_accepts_refund_only(self, db: Session, stored_quote: dict) -> None:
        _pay(db, stored_quote, PaymentType.DEPOSIT, "200")
        _move(db, stored_quote, PaymentStatus.CANCELLED)
        with pytest.raises(ConflictError):
            _pay(db, stored_quote, PaymentType.INSTALLMENT, "50")
        recorded = _pay(db, stored_quote, PaymentType.REFUND, "200")
        assert Decimal(recorded["quote"]["payment"]["total_paid"]) == 0

    def test_payments_listed_in_order(self, db: Session, stored_quote: dict) -> None:
        _pay(db, stored_quote, PaymentType.DEPOSIT, "100")
        _pay(db, stored_quote, PaymentType.INSTALLMENT, "200")
        _pay(db, stored_quote, PaymentType.ADJUSTMENT, "50")
        payments = list_payments(db, UUID(stored_quote["id"]))
        assert [p["sequence"] for p in payments] == [1, 2, 3]
        assert get_quote(db, UUID(stored_quote["id"]))["payment"]["total_paid"] == "250.00"


# ─── API ─────────────────────────────────────────────────────────────────────


class TestQuoteEndpoints:
    def test_create_and_fetch(self, client: TestClient, stored_configuration: dict) -> None:
        response = client.post("/api/v1/quotes", json=quote_payload(stored_configuration["id"]))
        assert response.status_code == 201
        quote = response.json()
        assert re.fullmatch(r"Q[1-4]-\d{4}-\d{5}", quote["quote_number"])

        assert client.get(f"/api/v1/quotes/{quote['id']}").status_code == 200
        by_number = client.get(f"/api/v1/quotes/by-number/{quote['quote_number']}")
        assert by_number.json()["id"] == quote["id"]

    def test_create_for_missing_configuration(self, client: TestClient) -> None:
        response = client.post("/api/v1/quotes", json=quote_payload(str(uuid4())))
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOT_FOUND"

    def test_create_validation_error(self, client: TestClient, stored_configuration: dict) -> None:
        response = client.post(
            "/api/v1/quotes", json=quote_payload(stored_configuration["id"], email="not-an-email")
        )
        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "INVALID_EMAIL"

    def test_create_without_county(self, client: TestClient, stored_configuration: dict) -> None:
        payload = quote_payload(stored_configuration["id"])
        del payload["customer"]["county"]
        response = client.post("/api/v1/quotes", json=payload)
        assert response.status_code == 422
        assert client.get("/api/v1/quotes").json()["pagination"]["total"] == 0

    def test_malformed_id(self, client: TestClient) -> None:
        assert client.get("/api/v1/quotes/not-a-uuid").status_code == 422

    def test_transition_and_payment(self, client: TestClient, stored_quote: dict) -> None:
        quote_id = stored_quote["id"]
        bad = client.post(f"/api/v1/quotes/{quote_id}/transitions", json={"status": "completed"})
        assert bad.status_code == 409
        assert bad.json()["detail"]["code"] == "INVALID_TRANSITION"

        ok = client.post(f"/api/v1/quotes/{quote_id}/transitions", json={"status": "quoted"})
        assert ok.json()["payment"]["status"] == "quoted"

        paid = client.post(
            f"/api/v1/quotes/{quote_id}/payments",
            json={"payment_type": "DEPOSIT", "amount": "2500"},
            headers={"X-Actor": "accounts"},
        )
        assert paid.status_code == 201
        assert paid.json()["payment"]["recorded_by"] == "accounts"

        history = client.get(f"/api/v1/quotes/{quote_id}/payments").json()
        assert [p["amount"] for p in history] == ["2500.00"]

    def test_list_and_summary(self, client: TestClient, stored_quote: dict) -> None:
        listed = client.get("/api/v1/quotes", params={"status": "pre-quote"}).json()
        assert listed["pagination"]["total"] == 1
        summary = client.get("/api/v1/quotes/summary").json()
        assert summary["by_status"]["pre-quote"] == 1

        elsewhere = client.get(
            "/api/v1/quotes/summary", params={"email": "nobody@example.ie"}
        ).json()
        assert elsewhere["total_quotes"] == 0
        assert elsewhere["total_value_inc_vat"] == "0.00"

    def test_delete_requires_force(self, client: TestClient, stored_quote: dict) -> None:
        quote_id = stored_quote["id"]
        client.post(f"/api/v1/quotes/{quote_id}/transitions", json={"status": "quoted"})
        assert client.delete(f"/api/v1/quotes/{quote_id}").status_code == 409
        assert client.delete(f"/api/v1/quotes/{quote_id}", params={"force": "true"}).status_code == 204
        assert client.get(f"/api/v1/quotes/{quote_id}").status_code == 404
