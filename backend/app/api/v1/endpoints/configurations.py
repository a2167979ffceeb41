from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.deps import get_actor, http_error
from backend.app.core.database import get_db
from backend.app.core.errors import QuoteEngineError
from backend.app.models.configuration import ProductType
from backend.app.repositories.base import ConfigurationFilters
from backend.app.schemas.configurations import (
    ProductConfigurationCreate,
    ProductConfigurationOut,
    ProductConfigurationPage,
    ProductConfigurationUpdate,
)
from backend.app.services.configurations import (
    create_configuration,
    delete_configuration,
    get_configuration,
    list_configurations,
    update_configuration,
)

router = APIRouter()


@router.post("", response_model=ProductConfigurationOut, status_code=status.HTTP_201_CREATED)
def create_new_configuration(
    payload: ProductConfigurationCreate,
    db: Session = Depends(get_db),
    actor: str | None = Depends(get_actor),
) -> dict:
    try:
        return create_configuration(db, payload, actor=actor)
    except QuoteEngineError as e:
        raise http_error(e)


@router.get("", response_model=ProductConfigurationPage)
def get_configurations(
    page: int = Query(1),
    limit: int = Query(20),
    product_type: ProductType | None = Query(None),
    min_total: Decimal | None = Query(None),
    max_total: Decimal | None = Query(None),
    db: Session = Depends(get_db),
) -> dict:
    filters = ConfigurationFilters(
        product_type=product_type, min_total=min_total, max_total=max_total
    )
    try:
        return list_configurations(db, filters=filters, page=page, limit=limit)
    except QuoteEngineError as e:
        raise http_error(e)


@router.get("/{config_id}", response_model=ProductConfigurationOut)
def get_single_configuration(config_id: UUID, db: Session = Depends(get_db)) -> dict:
    try:
        return get_configuration(db, config_id)
    except QuoteEngineError as e:
        raise http_error(e)


@router.patch("/{config_id}", response_model=ProductConfigurationOut)
def patch_configuration(
    config_id: UUID,
    payload: ProductConfigurationUpdate,
    db: Session = Depends(get_db),
    actor: str | None = Depends(get_actor),
) -> dict:
    try:
        return update_configuration(db, config_id, payload, actor=actor)
    except QuoteEngineError as e:
        raise http_error(e)


@router.delete("/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_configuration(
    config_id: UUID,
    db: Session = Depends(get_db),
    actor: str | None = Depends(get_actor),
) -> None:
    try:
        delete_configuration(db, config_id, actor=actor)
    except QuoteEngineError as e:
        raise http_error(e)
