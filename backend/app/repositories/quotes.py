from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from backend.app.core.errors import DuplicateQuoteNumberError, RepositoryError
from backend.app.models.configuration import ProductConfiguration
from backend.app.models.quotes import PaymentHistory, PaymentStatus, QuoteRequest
from backend.app.repositories.base import Page, Pagination, QuoteFilters, storage_errors

logger = logging.getLogger(__name__)


def _is_quote_number_collision(exc: IntegrityError) -> bool:
    # SQLite names the column, PostgreSQL the constraint; both contain this.
    return "quote_number" in str(exc.orig)


def _apply_filters(query: Query, filters: QuoteFilters) -> Query:
    if filters.status is not None:
        query = query.filter(QuoteRequest.payment_status == filters.status)
    if filters.configuration_id is not None:
        query = query.filter(QuoteRequest.configuration_id == filters.configuration_id)
    if filters.customer_email:
        query = query.filter(
            func.lower(QuoteRequest.customer_email) == filters.customer_email.strip().lower()
        )
    if filters.submitted_after is not None:
        query = query.filter(QuoteRequest.submitted_at >= filters.submitted_after)
    if filters.submitted_before is not None:
        query = query.filter(QuoteRequest.submitted_at <= filters.submitted_before)
    return query


class SqlQuoteRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_quote(self, quote: QuoteRequest) -> QuoteRequest:
        """Insert inside a savepoint so a number collision leaves the session usable."""
        try:
            with self.db.begin_nested():
                self.db.add(quote)
                self.db.flush()
        except IntegrityError as exc:
            if _is_quote_number_collision(exc):
                raise DuplicateQuoteNumberError(quote.quote_number) from exc
            logger.error("Quote insert rejected: %s", exc)
            raise RepositoryError("DB_INSERT_ERROR") from exc
        except SQLAlchemyError as exc:
            logger.error("Quote insert failed: %s", exc)
            raise RepositoryError("DB_INSERT_ERROR") from exc
        return quote

    def get_quote(self, quote_id: UUID) -> QuoteRequest | None:
        with storage_errors("DB_FETCH_ERROR"):
            return self.db.get(QuoteRequest, quote_id)

    def get_quote_by_number(self, quote_number: str) -> QuoteRequest | None:
        with storage_errors("DB_FETCH_ERROR"):
            return (
                self.db.query(QuoteRequest)
                .filter(QuoteRequest.quote_number == quote_number)
                .first()
            )

    def update_quote(self, quote: QuoteRequest) -> QuoteRequest:
        with storage_errors("DB_UPDATE_ERROR"), self.db.begin_nested():
            self.db.flush()
        return quote

    def delete_quote(self, quote: QuoteRequest) -> None:
        with storage_errors("DB_DELETE_ERROR"), self.db.begin_nested():
            self.db.delete(quote)
            self.db.flush()

    def list_quotes(self, filters: QuoteFilters, pagination: Pagination) -> Page[QuoteRequest]:
        query = _apply_filters(self.db.query(QuoteRequest), filters)

        with storage_errors("DB_FETCH_ERROR"):
            total = query.count()
            items = (
                query.options(
                    selectinload(QuoteRequest.payments),
                    selectinload(QuoteRequest.configuration),
                )
                .order_by(desc(QuoteRequest.submitted_at), desc(QuoteRequest.quote_number))
                .offset(pagination.offset)
                .limit(pagination.limit)
                .all()
            )
        return Page(items=items, total=total, page=pagination.page, limit=pagination.limit)

    def append_payment(self, quote: QuoteRequest, payment: PaymentHistory) -> PaymentHistory:
        payment.sequence = len(quote.payments) + 1
        with storage_errors("DB_INSERT_ERROR"), self.db.begin_nested():
            quote.payments.append(payment)
            self.db.flush()
        return payment

    def status_counts(self, filters: QuoteFilters) -> list[tuple[str, int]]:
        query = self.db.query(QuoteRequest.payment_status, func.count(QuoteRequest.id))
        with storage_errors("DB_FETCH_ERROR"):
            rows = (
                _apply_filters(query, filters)
                .group_by(QuoteRequest.payment_status)
                .all()
            )
        return [(status.value, count) for status, count in rows]

    def totals(
        self, statuses: list[PaymentStatus], filters: QuoteFilters
    ) -> tuple[Decimal, Decimal]:
        """Sum of quoted totals and of money received over matching quotes in ``statuses``."""
        query = self.db.query(
            func.coalesce(func.sum(ProductConfiguration.estimate_total_inc_vat), 0),
            func.coalesce(func.sum(QuoteRequest.total_paid), 0),
        ).join(ProductConfiguration, QuoteRequest.configuration_id == ProductConfiguration.id)
        with storage_errors("DB_FETCH_ERROR"):
            quoted, paid = (
                _apply_filters(query, filters)
                .filter(QuoteRequest.payment_status.in_(statuses))
                .one()
            )
        return Decimal(str(quoted)), Decimal(str(paid))
