from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.errors import ConflictError, DuplicateQuoteNumberError, NotFoundError
from backend.app.models.quotes import PaymentHistory, PaymentStatus, QuoteRequest
from backend.app.repositories.base import Pagination, QuoteFilters, QuoteRepository
from backend.app.repositories.quotes import SqlQuoteRepository
from backend.app.repositories.sequence import SqlQuoteNumberSequence
from backend.app.schemas.quotes import (
    CustomerIn,
    CustomerUpdate,
    PaymentCreate,
    QuoteRequestCreate,
    QuoteRequestUpdate,
)
from backend.app.services.audit import log_action
from backend.app.services.configurations import configuration_repository, estimate_to_dict
from backend.app.services.eircode import format_eircode, parse_county
from backend.app.services.lifecycle import PaymentSnapshot, apply_payment, transition
from backend.app.services.quote_numbers import QuoteNumberAllocator, epoch_for
from backend.app.services.validation import (
    validate_customer,
    validate_pagination,
    validate_payment,
    validate_quote_request,
    validate_quote_request_update,
)

logger = logging.getLogger(__name__)

Q = Decimal("0.01")

OPEN_STATUSES = [
    PaymentStatus.PRE_QUOTE,
    PaymentStatus.QUOTED,
    PaymentStatus.DEPOSIT_PAID,
    PaymentStatus.IN_PRODUCTION,
    PaymentStatus.COMPLETED,
]


def quote_repository(db: Session) -> QuoteRepository:
    return SqlQuoteRepository(db)


# ─── Create ───────────────────────────────────────────────────────────────────


def create_quote(
    db: Session,
    payload: QuoteRequestCreate,
    *,
    actor: str | None = None,
    now: datetime | None = None,
) -> dict:
    """Create a quote request for a stored configuration.

    The quote number comes from the epoch counter; a collision with an
    existing number (e.g. an imported record) is retried with the next value.
    """
    validate_quote_request(payload).raise_for_errors()

    config = configuration_repository(db).get_configuration(payload.configuration_id)
    if config is None:
        raise NotFoundError(f"Configuration {payload.configuration_id} not found")

    now = now or datetime.now(timezone.utc)
    epoch = epoch_for(now)
    allocator = QuoteNumberAllocator(SqlQuoteNumberSequence(db))
    repo = quote_repository(db)

    quote: QuoteRequest | None = None
    for attempt in range(1, settings.QUOTE_NUMBER_MAX_ATTEMPTS + 1):
        quote_number = allocator.allocate(epoch)
        try:
            quote = repo.create_quote(_new_quote(payload, quote_number, now))
            break
        except DuplicateQuoteNumberError:
            logger.warning(
                "Quote number %s already taken (attempt %d of %d)",
                quote_number, attempt, settings.QUOTE_NUMBER_MAX_ATTEMPTS,
            )
    if quote is None:
        db.rollback()
        raise ConflictError(
            f"Could not allocate a free quote number in {epoch}",
            code="QUOTE_NUMBER_EXHAUSTED",
        )

    log_action(
        db,
        actor=actor,
        action="QUOTE_CREATED",
        resource_type="quote_requests",
        resource_id=quote.quote_number,
        changes={
            "quote_number": quote.quote_number,
            "configuration_id": str(config.id),
            "customer_email": quote.customer_email,
            "total_inc_vat": str(config.estimate_total_inc_vat),
        },
    )
    db.commit()
    logger.info("Quote %s created for configuration %s", quote.quote_number, config.id)

    return _quote_to_dict(quote)


def _new_quote(payload: QuoteRequestCreate, quote_number: str, now: datetime) -> QuoteRequest:
    quote = QuoteRequest(
        quote_number=quote_number,
        configuration_id=payload.configuration_id,
        desired_install_timeframe=payload.desired_install_timeframe,
        payment_status=PaymentStatus.PRE_QUOTE,
        total_paid=Decimal("0"),
        expected_installments=payload.expected_installments,
        submitted_at=now,
        retention_expires_at=now + timedelta(days=settings.QUOTE_RETENTION_DAYS),
    )
    _apply_customer(quote, payload.customer)
    return quote


# ─── Read ─────────────────────────────────────────────────────────────────────


def get_quote(db: Session, quote_id: UUID) -> dict:
    return _quote_to_dict(_get_or_raise(db, quote_id))


def get_quote_by_number(db: Session, quote_number: str) -> dict:
    quote = quote_repository(db).get_quote_by_number(quote_number.strip().upper())
    if quote is None:
        raise NotFoundError(f"Quote {quote_number} not found")
    return _quote_to_dict(quote)


def list_quotes(
    db: Session,
    *,
    filters: QuoteFilters | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    validate_pagination(page, limit).raise_for_errors()
    result = quote_repository(db).list_quotes(
        filters or QuoteFilters(), Pagination(page=page, limit=limit)
    )
    return {
        "items": [_quote_to_dict(q) for q in result.items],
        "pagination": result.pagination_dict(),
    }


def quote_summary(db: Session, *, filters: QuoteFilters | None = None) -> dict:
    """Counts per status plus open pipeline value, over the quotes matching ``filters``."""
    filters = filters or QuoteFilters()
    repo = quote_repository(db)
    by_status = {status.value: 0 for status in PaymentStatus}
    by_status.update(dict(repo.status_counts(filters)))
    quoted, paid = repo.totals(OPEN_STATUSES, filters)
    return {
        "total_quotes": sum(by_status.values()),
        "by_status": by_status,
        "total_value_inc_vat": str(quoted.quantize(Q)),
        "total_paid": str(paid.quantize(Q)),
    }


# ─── Update / delete ──────────────────────────────────────────────────────────


def update_quote(
    db: Session,
    quote_id: UUID,
    payload: QuoteRequestUpdate,
    *,
    actor: str | None = None,
) -> dict:
    """Correct customer details or scheduling fields. Payment state is untouched."""
    validate_quote_request_update(payload).raise_for_errors()
    quote = _get_or_raise(db, quote_id)

    changes: dict[str, Any] = {}
    if payload.customer is not None:
        merged = _merge_customer(quote, payload.customer)
        validate_customer(merged).raise_for_errors()
        _apply_customer(quote, merged)
        changes["customer"] = sorted(payload.customer.model_fields_set)
    if payload.desired_install_timeframe is not None:
        quote.desired_install_timeframe = payload.desired_install_timeframe
        changes["desired_install_timeframe"] = payload.desired_install_timeframe
    if payload.expected_installments is not None:
        quote.expected_installments = payload.expected_installments
        changes["expected_installments"] = payload.expected_installments

    quote_repository(db).update_quote(quote)
    log_action(
        db,
        actor=actor,
        action="QUOTE_UPDATED",
        resource_type="quote_requests",
        resource_id=quote.quote_number,
        changes=changes,
    )
    db.commit()
    return _quote_to_dict(quote)


def delete_quote(
    db: Session,
    quote_id: UUID,
    *,
    force: bool = False,
    actor: str | None = None,
) -> None:
    """Delete a quote. Only ``pre-quote`` quotes, unless ``force`` is given."""
    quote = _get_or_raise(db, quote_id)
    if quote.payment_status != PaymentStatus.PRE_QUOTE and not force:
        raise ConflictError(
            f"Quote {quote.quote_number} is '{quote.payment_status.value}' and cannot be deleted",
            code="QUOTE_NOT_DELETABLE",
        )

    quote_number = quote.quote_number
    status = quote.payment_status.value
    quote_repository(db).delete_quote(quote)
    log_action(
        db,
        actor=actor,
        action="QUOTE_DELETED",
        resource_type="quote_requests",
        resource_id=quote_number,
        previous={"status": status},
        changes={"forced": force},
    )
    db.commit()
    logger.info("Quote %s deleted (status %s, forced=%s)", quote_number, status, force)


# ─── Lifecycle ────────────────────────────────────────────────────────────────


def transition_quote(
    db: Session,
    quote_id: UUID,
    target: PaymentStatus,
    *,
    note: str | None = None,
    actor: str | None = None,
) -> dict:
    quote = _get_or_raise(db, quote_id)
    current = _snapshot(quote)
    updated = transition(current, target)

    quote.payment_status = updated.status
    quote_repository(db).update_quote(quote)
    log_action(
        db,
        actor=actor,
        action="QUOTE_STATUS_CHANGED",
        resource_type="quote_requests",
        resource_id=quote.quote_number,
        previous={"status": current.status.value},
        changes={"status": updated.status.value, "note": note},
    )
    db.commit()
    logger.info(
        "Quote %s moved %s -> %s", quote.quote_number, current.status.value, updated.status.value
    )
    return _quote_to_dict(quote)


def record_payment(
    db: Session,
    quote_id: UUID,
    payload: PaymentCreate,
    *,
    actor: str | None = None,
    now: datetime | None = None,
) -> dict:
    """Append a payment history entry and update the running total."""
    validate_payment(payload).raise_for_errors()
    quote = _get_or_raise(db, quote_id)
    outcome = apply_payment(_snapshot(quote), payload.payment_type, payload.amount)

    quote.total_paid = outcome.snapshot.total_paid
    quote.last_payment_at = now or datetime.now(timezone.utc)
    payment = PaymentHistory(
        payment_type=payload.payment_type,
        amount=payload.amount,
        installment_number=payload.installment_number,
        note=payload.note,
        recorded_by=payload.recorded_by or actor,
    )
    quote_repository(db).append_payment(quote, payment)

    for warning in outcome.warnings:
        logger.warning("Quote %s: %s", quote.quote_number, warning)

    log_action(
        db,
        actor=actor or payload.recorded_by,
        action="PAYMENT_RECORDED",
        resource_type="quote_requests",
        resource_id=quote.quote_number,
        changes={
            "payment_type": payload.payment_type.value,
            "amount": str(payload.amount),
            "total_paid": str(outcome.snapshot.total_paid),
        },
    )
    db.commit()

    return {
        "quote": _quote_to_dict(quote),
        "payment": _payment_to_dict(payment),
        "warnings": [
            {"field": "amount", "message": w, "code": "OVERPAYMENT_WARNING"}
            for w in outcome.warnings
        ],
    }


def list_payments(db: Session, quote_id: UUID) -> list[dict]:
    quote = _get_or_raise(db, quote_id)
    return [_payment_to_dict(p) for p in quote.payments]


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _get_or_raise(db: Session, quote_id: UUID) -> QuoteRequest:
    quote = quote_repository(db).get_quote(quote_id)
    if quote is None:
        raise NotFoundError(f"Quote {quote_id} not found")
    return quote


def _snapshot(quote: QuoteRequest) -> PaymentSnapshot:
    return PaymentSnapshot(
        status=quote.payment_status,
        total_paid=quote.total_paid,
        total_due=quote.configuration.estimate_total_inc_vat,
    )


def _apply_customer(quote: QuoteRequest, customer: CustomerIn) -> None:
    county = parse_county(customer.county)
    quote.customer_first_name = customer.first_name
    quote.customer_last_name = customer.last_name
    quote.customer_email = customer.email.strip().lower()
    quote.customer_phone_prefix = customer.phone.country_prefix
    quote.customer_phone_number = customer.phone.number
    quote.customer_address_line1 = customer.address_line1
    quote.customer_address_line2 = customer.address_line2
    quote.customer_town = customer.town
    quote.customer_county = county.value if county else customer.county
    quote.customer_eircode = format_eircode(customer.eircode)


def _customer_to_dict(quote: QuoteRequest) -> dict[str, Any]:
    return {
        "first_name": quote.customer_first_name,
        "last_name": quote.customer_last_name,
        "email": quote.customer_email,
        "phone": {
            "country_prefix": quote.customer_phone_prefix,
            "number": quote.customer_phone_number,
        },
        "address_line1": quote.customer_address_line1,
        "address_line2": quote.customer_address_line2,
        "town": quote.customer_town,
        "county": quote.customer_county,
        "eircode": quote.customer_eircode,
    }


def _merge_customer(quote: QuoteRequest, update: CustomerUpdate) -> CustomerIn:
    merged = _customer_to_dict(quote)
    changes = update.model_dump(exclude_unset=True)
    phone = changes.pop("phone", None) or {}
    merged["phone"].update({k: v for k, v in phone.items() if v is not None})
    merged.update({
        k: v for k, v in changes.items()
        if v is not None or k in ("address_line2", "town")
    })
    return CustomerIn.model_validate(merged)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _payment_to_dict(payment: PaymentHistory) -> dict[str, Any]:
    return {
        "id": str(payment.id),
        "sequence": payment.sequence,
        "payment_type": payment.payment_type.value,
        "amount": str(payment.amount),
        "installment_number": payment.installment_number,
        "note": payment.note,
        "recorded_by": payment.recorded_by,
        "created_at": _iso(payment.created_at),
    }


def _quote_to_dict(quote: QuoteRequest) -> dict[str, Any]:
    config = quote.configuration
    total_due = config.estimate_total_inc_vat
    balance = max(total_due - quote.total_paid, Decimal("0"))
    return {
        "id": str(quote.id),
        "quote_number": quote.quote_number,
        "configuration_id": str(quote.configuration_id),
        "customer": _customer_to_dict(quote),
        "desired_install_timeframe": quote.desired_install_timeframe,
        "payment": {
            "status": quote.payment_status.value,
            "total_paid": str(quote.total_paid),
            "total_due": str(total_due),
            "balance_due": str(balance.quantize(Q)),
            "expected_installments": quote.expected_installments,
            "last_payment_at": _iso(quote.last_payment_at),
            "history": [_payment_to_dict(p) for p in quote.payments],
        },
        "estimate": estimate_to_dict(config),
        "submitted_at": quote.submitted_at.isoformat(),
        "retention_expires_at": quote.retention_expires_at.isoformat(),
        "created_at": _iso(quote.created_at),
        "updated_at": _iso(quote.updated_at),
    }
