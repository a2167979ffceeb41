from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.core.errors import ConflictError, NotFoundError
from backend.app.models.configuration import (
    GlazingElement,
    GlazingElementType,
    ProductConfiguration,
    ProductType,
)
from backend.app.repositories.base import ConfigurationFilters, ConfigurationRepository, Pagination
from backend.app.repositories.configurations import SqlConfigurationRepository
from backend.app.schemas.configurations import (
    GlazingElementIn,
    ProductConfigurationCreate,
    ProductConfigurationUpdate,
)
from backend.app.services.audit import log_action
from backend.app.services.pricing import PriceEstimate, estimate
from backend.app.services.validation import (
    ValidationResult,
    validate_configuration,
    validate_configuration_update,
    validate_estimate,
    validate_pagination,
)

logger = logging.getLogger(__name__)

_GLAZING_GROUPS: dict[GlazingElementType, str] = {
    GlazingElementType.WINDOW: "windows",
    GlazingElementType.EXTERNAL_DOOR: "external_doors",
    GlazingElementType.SKYLIGHT: "skylights",
}


def configuration_repository(db: Session) -> ConfigurationRepository:
    return SqlConfigurationRepository(db)


def _check_and_price(payload: ProductConfigurationCreate) -> tuple[PriceEstimate, ValidationResult]:
    """Validate, price, then validate the attached estimate. Raises ValidationError."""
    result = validate_configuration(payload.model_copy(update={"estimate": None}))
    result.raise_for_errors()
    price = estimate(payload)
    result.merge(validate_estimate(price.to_snapshot()))
    result.raise_for_errors()
    return price, result


def price_configuration(payload: ProductConfigurationCreate) -> dict:
    """Price a configuration without storing it."""
    price, result = _check_and_price(payload)
    return {
        "estimate": price.as_dict(),
        "breakdown": [line.as_dict() for line in price.breakdown],
        "warnings": [w.as_dict() for w in result.warnings],
    }


def create_configuration(
    db: Session,
    payload: ProductConfigurationCreate,
    *,
    actor: str | None = None,
) -> dict:
    price, result = _check_and_price(payload)

    config = ProductConfiguration()
    _apply_input(config, payload, price)
    configuration_repository(db).create_configuration(config)

    log_action(
        db,
        actor=actor,
        action="CONFIGURATION_CREATED",
        resource_type="product_configurations",
        resource_id=str(config.id),
        changes={
            "product_type": payload.product_type,
            "total_inc_vat": str(price.total_inc_vat),
        },
    )
    db.commit()
    logger.info(
        "Configuration %s created (%s, total %s)",
        config.id, payload.product_type, price.total_inc_vat,
    )

    return _configuration_to_dict(config, warnings=result.warnings)


def get_configuration(db: Session, config_id: UUID) -> dict:
    return _configuration_to_dict(_get_or_raise(db, config_id))


def list_configurations(
    db: Session,
    *,
    filters: ConfigurationFilters | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    validate_pagination(page, limit).raise_for_errors()
    result = configuration_repository(db).list_configurations(
        filters or ConfigurationFilters(), Pagination(page=page, limit=limit)
    )
    return {
        "items": [_configuration_to_dict(c) for c in result.items],
        "pagination": result.pagination_dict(),
    }


def update_configuration(
    db: Session,
    config_id: UUID,
    payload: ProductConfigurationUpdate,
    *,
    actor: str | None = None,
) -> dict:
    """Apply a partial update and re-price. Referenced configurations are frozen."""
    validate_configuration_update(payload).raise_for_errors()

    repo = configuration_repository(db)
    config = _get_or_raise(db, config_id)
    if repo.count_quotes_for_configuration(config.id) > 0:
        raise ConflictError(
            "Configuration is referenced by a quote request and can no longer change",
            code="CONFIGURATION_IN_USE",
        )

    previous_total = config.estimate_total_inc_vat
    merged = _merge_update(configuration_to_input(config), payload)
    price, result = _check_and_price(merged)
    _apply_input(config, merged, price)
    repo.update_configuration(config)

    log_action(
        db,
        actor=actor,
        action="CONFIGURATION_UPDATED",
        resource_type="product_configurations",
        resource_id=str(config.id),
        previous={"total_inc_vat": str(previous_total)},
        changes={
            "fields": sorted(payload.model_fields_set),
            "total_inc_vat": str(price.total_inc_vat),
        },
    )
    db.commit()

    return _configuration_to_dict(config, warnings=result.warnings)


def delete_configuration(db: Session, config_id: UUID, *, actor: str | None = None) -> None:
    repo = configuration_repository(db)
    config = _get_or_raise(db, config_id)
    if repo.count_quotes_for_configuration(config.id) > 0:
        raise ConflictError(
            "Configuration is referenced by a quote request",
            code="CONFIGURATION_IN_USE",
        )

    repo.delete_configuration(config)
    log_action(
        db,
        actor=actor,
        action="CONFIGURATION_DELETED",
        resource_type="product_configurations",
        resource_id=str(config_id),
    )
    db.commit()


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _get_or_raise(db: Session, config_id: UUID) -> ProductConfiguration:
    config = configuration_repository(db).get_configuration(config_id)
    if config is None:
        raise NotFoundError(f"Configuration {config_id} not found")
    return config


def _merge_update(
    current: ProductConfigurationCreate, payload: ProductConfigurationUpdate
) -> ProductConfigurationCreate:
    merged = current.model_dump()
    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            if key in ("size", "floor"):
                value = {k: v for k, v in value.items() if v is not None}
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    merged["estimate"] = None
    return ProductConfigurationCreate.model_validate(merged)


def _apply_input(
    config: ProductConfiguration,
    payload: ProductConfigurationCreate,
    price: PriceEstimate,
) -> None:
    config.product_type = ProductType(payload.product_type)
    config.width_m = payload.size.width_m
    config.depth_m = payload.size.depth_m
    config.height_m = payload.size.height_m
    config.cladding_area_sqm = payload.cladding.area_sqm
    config.floor_type = payload.floor.type
    config.floor_area_sqm = payload.floor.area_sqm
    config.internal_wall_finish = payload.internal_wall.finish
    config.internal_wall_area_sqm = payload.internal_wall.area_sqm
    config.internal_doors = payload.internal_doors
    config.heaters = payload.heaters
    config.bathroom_half = payload.bathroom.half
    config.bathroom_three_quarter = payload.bathroom.three_quarter
    config.electrical_switches = payload.electrical.switches
    config.electrical_sockets = payload.electrical.sockets
    config.electrical_downlight = payload.electrical.downlight
    config.electrical_heater = payload.electrical.heater
    config.electrical_undersink_heater = payload.electrical.undersink_heater
    config.electrical_elec_boiler = payload.electrical.elec_boiler
    config.delivery_distance_km = payload.delivery.distance_km
    config.delivery_cost = payload.delivery.cost
    config.extras_esp_insulation = payload.extras.esp_insulation
    config.extras_render = payload.extras.render
    config.extras_steel_door = payload.extras.steel_door
    config.extras_other = [
        {"title": item.title, "cost": str(item.cost)} for item in payload.extras.other
    ]
    config.permitted_development_flags = [
        flag.model_dump() for flag in payload.permitted_development_flags
    ]
    config.notes = payload.notes

    config.glazing_elements = [
        GlazingElement(
            element_type=element_type,
            width_m=element.width_m,
            height_m=element.height_m,
            position=position,
        )
        for element_type, group in _GLAZING_GROUPS.items()
        for position, element in enumerate(getattr(payload.glazing, group))
    ]

    config.estimate_currency = price.currency
    config.estimate_subtotal_ex_vat = price.subtotal_ex_vat
    config.estimate_vat_rate = price.vat_rate
    config.estimate_vat_amount = price.vat_amount
    config.estimate_total_inc_vat = price.total_inc_vat


def configuration_to_input(config: ProductConfiguration) -> ProductConfigurationCreate:
    """Rebuild the boundary schema from a stored configuration."""
    glazing: dict[str, list[GlazingElementIn]] = {group: [] for group in _GLAZING_GROUPS.values()}
    for element in config.glazing_elements:
        glazing[_GLAZING_GROUPS[element.element_type]].append(
            GlazingElementIn(width_m=element.width_m, height_m=element.height_m)
        )

    return ProductConfigurationCreate.model_validate({
        "product_type": config.product_type.value,
        "size": {
            "width_m": config.width_m,
            "depth_m": config.depth_m,
            "height_m": config.height_m,
        },
        "cladding": {"area_sqm": config.cladding_area_sqm},
        "floor": {"type": config.floor_type, "area_sqm": config.floor_area_sqm},
        "internal_wall": {
            "finish": config.internal_wall_finish,
            "area_sqm": config.internal_wall_area_sqm,
        },
        "internal_doors": config.internal_doors,
        "heaters": config.heaters,
        "bathroom": {
            "half": config.bathroom_half,
            "three_quarter": config.bathroom_three_quarter,
        },
        "electrical": {
            "switches": config.electrical_switches,
            "sockets": config.electrical_sockets,
            "downlight": config.electrical_downlight,
            "heater": config.electrical_heater,
            "undersink_heater": config.electrical_undersink_heater,
            "elec_boiler": config.electrical_elec_boiler,
        },
        "glazing": glazing,
        "delivery": {
            "distance_km": config.delivery_distance_km,
            "cost": config.delivery_cost,
        },
        "extras": {
            "esp_insulation": config.extras_esp_insulation,
            "render": config.extras_render,
            "steel_door": config.extras_steel_door,
            "other": config.extras_other or [],
        },
        "permitted_development_flags": config.permitted_development_flags or [],
        "notes": config.notes or "",
    })


def _str_or_none(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def estimate_to_dict(config: ProductConfiguration) -> dict[str, str]:
    return {
        "currency": config.estimate_currency,
        "subtotal_ex_vat": str(config.estimate_subtotal_ex_vat),
        "vat_rate": str(config.estimate_vat_rate.normalize()),
        "vat_amount": str(config.estimate_vat_amount),
        "total_inc_vat": str(config.estimate_total_inc_vat),
    }


def _configuration_to_dict(
    config: ProductConfiguration, *, warnings: list | None = None
) -> dict[str, Any]:
    glazing: dict[str, list[dict[str, str]]] = {group: [] for group in _GLAZING_GROUPS.values()}
    for element in config.glazing_elements:
        glazing[_GLAZING_GROUPS[element.element_type]].append(
            {"width_m": str(element.width_m), "height_m": str(element.height_m)}
        )

    return {
        "id": str(config.id),
        "product_type": config.product_type.value,
        "size": {
            "width_m": str(config.width_m),
            "depth_m": str(config.depth_m),
            "height_m": str(config.height_m),
        },
        "cladding": {"area_sqm": str(config.cladding_area_sqm)},
        "floor": {"type": config.floor_type.value, "area_sqm": str(config.floor_area_sqm)},
        "internal_wall": {
            "finish": config.internal_wall_finish.value,
            "area_sqm": _str_or_none(config.internal_wall_area_sqm),
        },
        "internal_doors": config.internal_doors,
        "heaters": config.heaters,
        "bathroom": {
            "half": config.bathroom_half,
            "three_quarter": config.bathroom_three_quarter,
        },
        "electrical": {
            "switches": config.electrical_switches,
            "sockets": config.electrical_sockets,
            "downlight": config.electrical_downlight,
            "heater": config.electrical_heater,
            "undersink_heater": config.electrical_undersink_heater,
            "elec_boiler": config.electrical_elec_boiler,
        },
        "glazing": glazing,
        "delivery": {
            "distance_km": _str_or_none(config.delivery_distance_km),
            "cost": str(config.delivery_cost),
        },
        "extras": {
            "esp_insulation": _str_or_none(config.extras_esp_insulation),
            "render": _str_or_none(config.extras_render),
            "steel_door": config.extras_steel_door,
            "other": config.extras_other or [],
        },
        "permitted_development_flags": config.permitted_development_flags or [],
        "notes": config.notes or "",
        "estimate": estimate_to_dict(config),
        "created_at": config.created_at.isoformat() if config.created_at else None,
        "updated_at": config.updated_at.isoformat() if config.updated_at else None,
        "warnings": [w.as_dict() for w in (warnings or [])],
    }
