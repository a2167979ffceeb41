"""Storage interfaces consumed by the services.

The SQLAlchemy implementations live next to this module. Implementations
flush but never commit; the calling service owns the transaction. Any
storage failure surfaces as :class:`~backend.app.core.errors.RepositoryError`.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Generic, Protocol, TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from backend.app.core.errors import RepositoryError
from backend.app.models.configuration import ProductConfiguration, ProductType
from backend.app.models.quotes import PaymentHistory, PaymentStatus, QuoteRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def pagination_dict(self) -> dict[str, int | bool]:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
        }


@dataclass(frozen=True)
class ConfigurationFilters:
    product_type: ProductType | None = None
    min_total: Decimal | None = None
    max_total: Decimal | None = None
    created_after: datetime | None = None
    created_before: datetime | None = None


@dataclass(frozen=True)
class QuoteFilters:
    status: PaymentStatus | None = None
    configuration_id: UUID | None = None
    customer_email: str | None = None
    submitted_after: datetime | None = None
    submitted_before: datetime | None = None


class ConfigurationRepository(Protocol):
    def create_configuration(self, config: ProductConfiguration) -> ProductConfiguration: ...

    def get_configuration(self, config_id: UUID) -> ProductConfiguration | None: ...

    def update_configuration(self, config: ProductConfiguration) -> ProductConfiguration: ...

    def delete_configuration(self, config: ProductConfiguration) -> None: ...

    def list_configurations(
        self, filters: ConfigurationFilters, pagination: Pagination
    ) -> Page[ProductConfiguration]: ...

    def count_quotes_for_configuration(self, config_id: UUID) -> int: ...


class QuoteRepository(Protocol):
    def create_quote(self, quote: QuoteRequest) -> QuoteRequest: ...

    def get_quote(self, quote_id: UUID) -> QuoteRequest | None: ...

    def get_quote_by_number(self, quote_number: str) -> QuoteRequest | None: ...

    def update_quote(self, quote: QuoteRequest) -> QuoteRequest: ...

    def delete_quote(self, quote: QuoteRequest) -> None: ...

    def list_quotes(self, filters: QuoteFilters, pagination: Pagination) -> Page[QuoteRequest]: ...

    def append_payment(self, quote: QuoteRequest, payment: PaymentHistory) -> PaymentHistory: ...

    def status_counts(self, filters: QuoteFilters) -> list[tuple[str, int]]: ...

    def totals(
        self, statuses: list[PaymentStatus], filters: QuoteFilters
    ) -> tuple[Decimal, Decimal]: ...


class QuoteNumberSequence(Protocol):
    def reserve_next(self, epoch: str) -> int:
        """Atomically advance the epoch's counter and return the new value."""
        ...


@contextmanager
def storage_errors(code: str) -> Iterator[None]:
    """Translate driver errors raised inside the block into ``RepositoryError(code)``."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Storage operation failed (%s): %s", code, exc)
        raise RepositoryError(code) from exc
