from __future__ import annotations

from uuid import UUID

from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from backend.app.core.errors import ConflictError, RepositoryError
from backend.app.models.configuration import ProductConfiguration
from backend.app.models.quotes import QuoteRequest
from backend.app.repositories.base import (
    ConfigurationFilters,
    Page,
    Pagination,
    storage_errors,
)


class SqlConfigurationRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_configuration(self, config: ProductConfiguration) -> ProductConfiguration:
        with storage_errors("DB_INSERT_ERROR"), self.db.begin_nested():
            self.db.add(config)
            self.db.flush()
        return config

    def get_configuration(self, config_id: UUID) -> ProductConfiguration | None:
        with storage_errors("DB_FETCH_ERROR"):
            return self.db.get(ProductConfiguration, config_id)

    def update_configuration(self, config: ProductConfiguration) -> ProductConfiguration:
        with storage_errors("DB_UPDATE_ERROR"), self.db.begin_nested():
            self.db.flush()
        return config

    def delete_configuration(self, config: ProductConfiguration) -> None:
        try:
            with self.db.begin_nested():
                self.db.delete(config)
                self.db.flush()
        except IntegrityError as exc:
            # A quote was attached between the usage check and the delete.
            raise ConflictError(
                "Configuration is referenced by a quote request",
                code="CONFIGURATION_IN_USE",
            ) from exc
        except SQLAlchemyError as exc:
            raise RepositoryError("DB_DELETE_ERROR") from exc

    def list_configurations(
        self, filters: ConfigurationFilters, pagination: Pagination
    ) -> Page[ProductConfiguration]:
        query = self.db.query(ProductConfiguration)
        if filters.product_type is not None:
            query = query.filter(ProductConfiguration.product_type == filters.product_type)
        if filters.min_total is not None:
            query = query.filter(ProductConfiguration.estimate_total_inc_vat >= filters.min_total)
        if filters.max_total is not None:
            query = query.filter(ProductConfiguration.estimate_total_inc_vat <= filters.max_total)
        if filters.created_after is not None:
            query = query.filter(ProductConfiguration.created_at >= filters.created_after)
        if filters.created_before is not None:
            query = query.filter(ProductConfiguration.created_at <= filters.created_before)

        with storage_errors("DB_FETCH_ERROR"):
            total = query.count()
            items = (
                query.options(selectinload(ProductConfiguration.glazing_elements))
                .order_by(desc(ProductConfiguration.created_at), ProductConfiguration.id)
                .offset(pagination.offset)
                .limit(pagination.limit)
                .all()
            )
        return Page(items=items, total=total, page=pagination.page, limit=pagination.limit)

    def count_quotes_for_configuration(self, config_id: UUID) -> int:
        with storage_errors("DB_FETCH_ERROR"):
            return (
                self.db.query(func.count(QuoteRequest.id))
                .filter(QuoteRequest.configuration_id == config_id)
                .scalar()
                or 0
            )
