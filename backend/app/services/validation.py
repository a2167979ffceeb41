"""Validation rules gating what may be persisted.

Every check reports a :class:`FieldError` with a dotted field path and a
stable code; nothing here raises for bad input. Callers turn an invalid
result into a :class:`ValidationError` with ``raise_for_errors()``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal

from backend.app.core.config import settings
from backend.app.core.errors import FieldError, ValidationError
from backend.app.models.configuration import ProductType
from backend.app.schemas.configurations import (
    EstimateSnapshot,
    ExtrasIn,
    GlazingIn,
    ProductConfigurationCreate,
    ProductConfigurationUpdate,
)
from backend.app.schemas.quotes import (
    CustomerIn,
    CustomerUpdate,
    PaymentCreate,
    QuoteRequestCreate,
    QuoteRequestUpdate,
)
from backend.app.services.eircode import county_mismatch, is_valid_eircode, parse_county

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MAX_PAGE_LIMIT = 100

PRODUCT_TYPES = frozenset(p.value for p in ProductType)


@dataclass
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)
    warnings: list[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, field_path: str, message: str, code: str) -> None:
        self.errors.append(FieldError(field=field_path, message=message, code=code))

    def add_warning(self, field_path: str, message: str, code: str) -> None:
        self.warnings.append(FieldError(field=field_path, message=message, code=code))

    def merge(self, other: ValidationResult) -> ValidationResult:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationError(self.errors, warnings=self.warnings)


# ─── Shared checks ────────────────────────────────────────────────────────────


def _positive(result: ValidationResult, path: str, value: Decimal | None, code: str) -> None:
    if value is not None and value <= 0:
        result.add_error(path, f"{path} must be greater than 0", code)


def _non_negative(
    result: ValidationResult, path: str, value: Decimal | int | None, code: str
) -> None:
    if value is not None and value < 0:
        result.add_error(path, f"{path} cannot be negative", code)


def _required(result: ValidationResult, path: str, value: str | None) -> bool:
    if value is None or not value.strip():
        result.add_error(path, f"{path} is required", "REQUIRED_FIELD")
        return False
    return True


def _check_product_type(result: ValidationResult, value: str) -> None:
    if value not in PRODUCT_TYPES:
        result.add_error(
            "product_type",
            f"Product type must be one of: {', '.join(sorted(PRODUCT_TYPES))}",
            "INVALID_PRODUCT_TYPE",
        )


def _check_size(
    result: ValidationResult,
    width_m: Decimal | None,
    depth_m: Decimal | None,
    height_m: Decimal | None,
) -> None:
    _positive(result, "size.width_m", width_m, "INVALID_DIMENSION")
    _positive(result, "size.depth_m", depth_m, "INVALID_DIMENSION")
    _positive(result, "size.height_m", height_m, "INVALID_DIMENSION")
    if width_m is not None and depth_m is not None and width_m > 0 and depth_m > 0:
        if width_m * depth_m > Decimal(str(settings.LARGE_FLOOR_AREA_SQM)):
            result.add_warning(
                "size",
                "Large floor area may require planning permission",
                "LARGE_SIZE_WARNING",
            )


def _check_glazing(result: ValidationResult, glazing: GlazingIn) -> None:
    for group in ("windows", "external_doors", "skylights"):
        for i, element in enumerate(getattr(glazing, group)):
            _positive(result, f"glazing.{group}[{i}].width_m", element.width_m, "INVALID_DIMENSION")
            _positive(result, f"glazing.{group}[{i}].height_m", element.height_m, "INVALID_DIMENSION")


def _check_extras(result: ValidationResult, extras: ExtrasIn) -> None:
    _non_negative(result, "extras.esp_insulation", extras.esp_insulation, "INVALID_AREA")
    _non_negative(result, "extras.render", extras.render, "INVALID_AREA")
    _non_negative(result, "extras.steel_door", extras.steel_door, "INVALID_COUNT")
    for i, item in enumerate(extras.other):
        _required(result, f"extras.other[{i}].title", item.title)
        _non_negative(result, f"extras.other[{i}].cost", item.cost, "INVALID_COST")


def _check_estimate(result: ValidationResult, snapshot: EstimateSnapshot) -> None:
    if snapshot.total_inc_vat <= 0:
        result.add_error(
            "estimate.total_inc_vat",
            "Estimated total must be greater than 0",
            "INVALID_ESTIMATE",
        )


# ─── Configurations ───────────────────────────────────────────────────────────


def validate_configuration(payload: ProductConfigurationCreate) -> ValidationResult:
    result = ValidationResult()

    _check_product_type(result, payload.product_type)
    _check_size(result, payload.size.width_m, payload.size.depth_m, payload.size.height_m)
    _non_negative(result, "cladding.area_sqm", payload.cladding.area_sqm, "INVALID_AREA")
    _positive(result, "floor.area_sqm", payload.floor.area_sqm, "INVALID_AREA")
    _non_negative(result, "internal_wall.area_sqm", payload.internal_wall.area_sqm, "INVALID_AREA")

    _non_negative(result, "internal_doors", payload.internal_doors, "INVALID_COUNT")
    _non_negative(result, "heaters", payload.heaters, "INVALID_COUNT")
    _non_negative(result, "bathroom.half", payload.bathroom.half, "INVALID_COUNT")
    _non_negative(result, "bathroom.three_quarter", payload.bathroom.three_quarter, "INVALID_COUNT")
    for name, count in payload.electrical.model_dump().items():
        _non_negative(result, f"electrical.{name}", count, "INVALID_COUNT")

    _check_glazing(result, payload.glazing)
    _non_negative(result, "delivery.distance_km", payload.delivery.distance_km, "INVALID_DISTANCE")
    _non_negative(result, "delivery.cost", payload.delivery.cost, "INVALID_COST")
    _check_extras(result, payload.extras)

    if payload.estimate is not None:
        _check_estimate(result, payload.estimate)

    return result


def validate_estimate(snapshot: EstimateSnapshot) -> ValidationResult:
    result = ValidationResult()
    _check_estimate(result, snapshot)
    return result


def validate_configuration_update(payload: ProductConfigurationUpdate) -> ValidationResult:
    """Check only the fields present in a partial update."""
    result = ValidationResult()

    if payload.product_type is not None:
        _check_product_type(result, payload.product_type)
    if payload.size is not None:
        _check_size(result, payload.size.width_m, payload.size.depth_m, payload.size.height_m)
    if payload.cladding is not None:
        _non_negative(result, "cladding.area_sqm", payload.cladding.area_sqm, "INVALID_AREA")
    if payload.floor is not None:
        _positive(result, "floor.area_sqm", payload.floor.area_sqm, "INVALID_AREA")
    if payload.internal_wall is not None:
        _non_negative(
            result, "internal_wall.area_sqm", payload.internal_wall.area_sqm, "INVALID_AREA"
        )
    _non_negative(result, "internal_doors", payload.internal_doors, "INVALID_COUNT")
    _non_negative(result, "heaters", payload.heaters, "INVALID_COUNT")
    if payload.bathroom is not None:
        _non_negative(result, "bathroom.half", payload.bathroom.half, "INVALID_COUNT")
        _non_negative(
            result, "bathroom.three_quarter", payload.bathroom.three_quarter, "INVALID_COUNT"
        )
    if payload.electrical is not None:
        for name, count in payload.electrical.model_dump().items():
            _non_negative(result, f"electrical.{name}", count, "INVALID_COUNT")
    if payload.glazing is not None:
        _check_glazing(result, payload.glazing)
    if payload.delivery is not None:
        _non_negative(
            result, "delivery.distance_km", payload.delivery.distance_km, "INVALID_DISTANCE"
        )
        _non_negative(result, "delivery.cost", payload.delivery.cost, "INVALID_COST")
    if payload.extras is not None:
        _check_extras(result, payload.extras)

    return result


# ─── Customers & quotes ───────────────────────────────────────────────────────


def _check_email(result: ValidationResult, value: str) -> None:
    if _required(result, "customer.email", value) and not EMAIL_PATTERN.match(value.strip()):
        result.add_error("customer.email", "Invalid email format", "INVALID_EMAIL")


def _check_eircode(result: ValidationResult, value: str) -> bool:
    if not _required(result, "customer.eircode", value):
        return False
    if not is_valid_eircode(value):
        result.add_error("customer.eircode", "Invalid Eircode format", "INVALID_EIRCODE")
        return False
    return True


def _check_county(result: ValidationResult, county: str, eircode: str | None) -> None:
    if parse_county(county) is None:
        result.add_error("customer.county", "County not in service area", "INVALID_COUNTY")
        return
    if eircode is None:
        return
    message = county_mismatch(eircode, county)
    if message:
        result.add_error("customer.eircode", message, "EIRCODE_COUNTY_MISMATCH")


def validate_customer(customer: CustomerIn) -> ValidationResult:
    result = ValidationResult()

    _required(result, "customer.first_name", customer.first_name)
    _required(result, "customer.last_name", customer.last_name)
    _check_email(result, customer.email)
    _required(result, "customer.phone.number", customer.phone.number)
    _required(result, "customer.address_line1", customer.address_line1)
    eircode_ok = _check_eircode(result, customer.eircode)
    if _required(result, "customer.county", customer.county):
        _check_county(result, customer.county, customer.eircode if eircode_ok else None)

    return result


def _check_installments(result: ValidationResult, value: int | None) -> None:
    if value is not None and value < 1:
        result.add_error(
            "expected_installments", "Expected installments must be at least 1", "INVALID_COUNT"
        )


def validate_quote_request(payload: QuoteRequestCreate) -> ValidationResult:
    result = validate_customer(payload.customer)
    _check_installments(result, payload.expected_installments)
    return result


def _validate_customer_update(customer: CustomerUpdate) -> ValidationResult:
    result = ValidationResult()

    if customer.first_name is not None:
        _required(result, "customer.first_name", customer.first_name)
    if customer.last_name is not None:
        _required(result, "customer.last_name", customer.last_name)
    if customer.email is not None:
        _check_email(result, customer.email)
    if customer.phone is not None and customer.phone.number is not None:
        _required(result, "customer.phone.number", customer.phone.number)
    if customer.address_line1 is not None:
        _required(result, "customer.address_line1", customer.address_line1)
    eircode_ok = customer.eircode is not None and _check_eircode(result, customer.eircode)
    if customer.county is not None and _required(result, "customer.county", customer.county):
        _check_county(result, customer.county, customer.eircode if eircode_ok else None)

    return result


def validate_quote_request_update(payload: QuoteRequestUpdate) -> ValidationResult:
    """Check only the supplied fields of a quote correction."""
    result = ValidationResult()
    if payload.customer is not None:
        result.merge(_validate_customer_update(payload.customer))
    _check_installments(result, payload.expected_installments)
    return result


# ─── Payments & paging ────────────────────────────────────────────────────────


def validate_payment(payload: PaymentCreate) -> ValidationResult:
    result = ValidationResult()
    if payload.amount <= 0:
        result.add_error("amount", "Amount must be greater than 0", "INVALID_AMOUNT")
    if payload.installment_number is not None and payload.installment_number < 1:
        result.add_error(
            "installment_number", "Installment number must be at least 1", "INVALID_COUNT"
        )
    return result


def validate_pagination(page: int, limit: int) -> ValidationResult:
    result = ValidationResult()
    if page < 1:
        result.add_error("page", "Page must be at least 1", "INVALID_PAGE")
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        result.add_error(
            "limit", f"Limit must be between 1 and {MAX_PAGE_LIMIT}", "INVALID_LIMIT"
        )
    return result
