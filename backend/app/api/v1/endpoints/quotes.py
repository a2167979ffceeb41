from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.deps import get_actor, http_error
from backend.app.core.database import get_db
from backend.app.core.errors import QuoteEngineError
from backend.app.models.quotes import PaymentStatus
from backend.app.repositories.base import QuoteFilters
from backend.app.schemas.quotes import (
    PaymentCreate,
    PaymentOut,
    PaymentRecordedOut,
    QuoteOut,
    QuotePage,
    QuoteRequestCreate,
    QuoteRequestUpdate,
    QuoteSummaryOut,
    QuoteTransitionIn,
)
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

router = APIRouter()


@router.post("", response_model=QuoteOut, status_code=status.HTTP_201_CREATED)
def create_new_quote(
    payload: QuoteRequestCreate,
    db: Session = Depends(get_db),
    actor: str | None = Depends(get_actor),
) -> dict:
    try:
        return create_quote(db, payload, actor=actor)
    except QuoteEngineError as e:
        raise http_error(e)


@router.get("", response_model=QuotePage)
def get_quotes(
    page: int = Query(1),
    limit: int = Query(20),
    status_filter: PaymentStatus | None = Query(None, alias="status"),
    configuration_id: UUID | None = Query(None),
    email: str | None = Query(None),
    db: Session = Depends(get_db),
) -> dict:
    filters = QuoteFilters(
        status=status_filter, configuration_id=configuration_id, customer_email=email
    )
    try:
        return list_quotes(db, filters=filters, page=page, limit=limit)
    except QuoteEngineError as e:
        raise http_error(e)


@router.get("/summary", response_model=QuoteSummaryOut)
def get_quote_summary(
    configuration_id: UUID | None = Query(None),
    email: str | None = Query(None),
    db: Session = Depends(get_db),
) -> dict:
    filters = QuoteFilters(configuration_id=configuration_id, customer_email=email)
    try:
        return quote_summary(db, filters=filters)
    except QuoteEngineError as e:
        raise http_error(e)


@router.get("/by-number/{quote_number}", response_model=QuoteOut)
def get_quote_by_quote_number(quote_number: str, db: Session = Depends(get_db)) -> dict:
    try:
        return get_quote_by_number(db, quote_number)
    except QuoteEngineError as e:
        raise http_error(e)


@router.get("/{quote_id}", response_model=QuoteOut)
def get_single_quote(quote_id: UUID, db: Session = Depends(get_db)) -> dict:
    try:
        return get_quote(db, quote_id)
    except QuoteEngineError as e:
        raise http_error(e)


@router.patch("/{quote_id}", response_model=QuoteOut)
def patch_quote(
    quote_id: UUID,
    payload: QuoteRequestUpdate,
    db: Session = Depends(get_db),
    actor: str | None = Depends(get_actor),
) -> dict:
    try:
        return update_quote(db, quote_id, payload, actor=actor)
    except QuoteEngineError as e:
        raise http_error(e)


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_quote(
    quote_id: UUID,
    force: bool = Query(False),
    db: Session = Depends(get_db),
    actor: str | None = Depends(get_actor),
) -> None:
    try:
        delete_quote(db, quote_id, force=force, actor=actor)
    except QuoteEngineError as e:
        raise http_error(e)


@router.post("/{quote_id}/transitions", response_model=QuoteOut)
def post_transition(
    quote_id: UUID,
    payload: QuoteTransitionIn,
    db: Session = Depends(get_db),
    actor: str | None = Depends(get_actor),
) -> dict:
    try:
        return transition_quote(db, quote_id, payload.status, note=payload.note, actor=actor)
    except QuoteEngineError as e:
        raise http_error(e)


@router.get("/{quote_id}/payments", response_model=list[PaymentOut])
def get_payments(quote_id: UUID, db: Session = Depends(get_db)) -> list[dict]:
    try:
        return list_payments(db, quote_id)
    except QuoteEngineError as e:
        raise http_error(e)


@router.post(
    "/{quote_id}/payments",
    response_model=PaymentRecordedOut,
    status_code=status.HTTP_201_CREATED,
)
def post_payment(
    quote_id: UUID,
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    actor: str | None = Depends(get_actor),
) -> dict:
    try:
        return record_payment(db, quote_id, payload, actor=actor)
    except QuoteEngineError as e:
        raise http_error(e)
