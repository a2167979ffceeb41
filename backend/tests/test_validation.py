"""Tests for configuration, customer, payment and paging validation."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pydantic
import pytest

from backend.app.core.errors import ValidationError
from backend.app.schemas.configurations import (
    EstimateSnapshot,
    ProductConfigurationCreate,
    ProductConfigurationUpdate,
)
from backend.app.schemas.quotes import (
    CustomerIn,
    PaymentCreate,
    QuoteRequestCreate,
    QuoteRequestUpdate,
)
from backend.app.services.validation import (
    validate_configuration,
    validate_configuration_update,
    validate_customer,
    validate_pagination,
    validate_payment,
    validate_quote_request,
    validate_quote_request_update,
)
from backend.tests.conftest import configuration_payload, customer_payload


def _config(**overrides: Any) -> ProductConfigurationCreate:
    return ProductConfigurationCreate.model_validate(configuration_payload(**overrides))


def _codes(result: Any) -> dict[str, str]:
    return {e.field: e.code for e in result.errors}


# ─── Configurations ──────────────────────────────────────────────────────────


class TestValidateConfiguration:
    def test_valid_configuration(self) -> None:
        result = validate_configuration(_config())
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_unknown_product_type(self) -> None:
        result = validate_configuration(_config(product_type="shed"))
        assert _codes(result) == {"product_type": "INVALID_PRODUCT_TYPE"}

    def test_each_bad_dimension_reported(self) -> None:
        result = validate_configuration(
            _config(size={"width_m": "0", "depth_m": "-1", "height_m": "0"})
        )
        assert _codes(result) == {
            "size.width_m": "INVALID_DIMENSION",
            "size.depth_m": "INVALID_DIMENSION",
            "size.height_m": "INVALID_DIMENSION",
        }

    def test_areas(self) -> None:
        result = validate_configuration(_config(
            cladding={"area_sqm": "-1"},
            floor={"type": "tile", "area_sqm": "0"},
            internal_wall={"finish": "panel", "area_sqm": "-3"},
        ))
        assert _codes(result) == {
            "cladding.area_sqm": "INVALID_AREA",
            "floor.area_sqm": "INVALID_AREA",
            "internal_wall.area_sqm": "INVALID_AREA",
        }

    def test_glazing_field_paths(self) -> None:
        result = validate_configuration(_config(glazing={
            "windows": [{"width_m": "1", "height_m": "1"}, {"width_m": "0", "height_m": "1"}],
        }))
        assert _codes(result) == {"glazing.windows[1].width_m": "INVALID_DIMENSION"}

    def test_costs_and_titles(self) -> None:
        result = validate_configuration(_config(
            delivery={"cost": "-5"},
            extras={"other": [{"title": "  ", "cost": "-1"}]},
        ))
        assert _codes(result) == {
            "delivery.cost": "INVALID_COST",
            "extras.other[0].title": "REQUIRED_FIELD",
            "extras.other[0].cost": "INVALID_COST",
        }

    def test_negative_counts(self) -> None:
        result = validate_configuration(_config(
            bathroom={"half": -1},
            electrical={"sockets": -2},
            internal_doors=-1,
        ))
        assert _codes(result) == {
            "bathroom.half": "INVALID_COUNT",
            "electrical.sockets": "INVALID_COUNT",
            "internal_doors": "INVALID_COUNT",
        }

    def test_attached_estimate_must_be_positive(self) -> None:
        config = _config().model_copy(update={"estimate": EstimateSnapshot(
            subtotal_ex_vat=Decimal("0"),
            vat_rate=Decimal("0.23"),
            vat_amount=Decimal("0"),
            total_inc_vat=Decimal("0"),
        )})
        result = validate_configuration(config)
        assert _codes(result) == {"estimate.total_inc_vat": "INVALID_ESTIMATE"}

    def test_large_floor_area_is_a_warning(self) -> None:
        result = validate_configuration(
            _config(size={"width_m": "8", "depth_m": "7"}, floor={"area_sqm": "56"})
        )
        assert result.is_valid
        assert [w.code for w in result.warnings] == ["LARGE_SIZE_WARNING"]

    def test_raise_for_errors(self) -> None:
        result = validate_configuration(_config(product_type="shed"))
        with pytest.raises(ValidationError) as exc:
            result.raise_for_errors()
        assert exc.value.status_code == 400
        assert exc.value.to_detail()["errors"][0]["code"] == "INVALID_PRODUCT_TYPE"


class TestValidateConfigurationUpdate:
    def test_only_supplied_fields_checked(self) -> None:
        result = validate_configuration_update(
            ProductConfigurationUpdate.model_validate({"notes": "Corner plot"})
        )
        assert result.is_valid

    def test_supplied_fields_use_same_rules(self) -> None:
        result = validate_configuration_update(ProductConfigurationUpdate.model_validate({
            "size": {"width_m": "-2"},
            "floor": {"area_sqm": "0"},
            "heaters": -1,
        }))
        assert _codes(result) == {
            "size.width_m": "INVALID_DIMENSION",
            "floor.area_sqm": "INVALID_AREA",
            "heaters": "INVALID_COUNT",
        }


# ─── Customers & quotes ──────────────────────────────────────────────────────


class TestValidateCustomer:
    def test_valid_customer(self) -> None:
        assert validate_customer(CustomerIn.model_validate(customer_payload())).is_valid

    def test_blank_names_required(self) -> None:
        result = validate_customer(
            CustomerIn.model_validate(customer_payload(first_name="  ", last_name=""))
        )
        assert _codes(result) == {
            "customer.first_name": "REQUIRED_FIELD",
            "customer.last_name": "REQUIRED_FIELD",
        }

    @pytest.mark.parametrize("email", ["no-at-sign", "a@b", "two words@example.ie", "@x.ie"])
    def test_invalid_email(self, email: str) -> None:
        result = validate_customer(CustomerIn.model_validate(customer_payload(email=email)))
        assert _codes(result) == {"customer.email": "INVALID_EMAIL"}

    def test_invalid_eircode(self) -> None:
        result = validate_customer(CustomerIn.model_validate(customer_payload(eircode="B12 3456")))
        assert _codes(result) == {"customer.eircode": "INVALID_EIRCODE"}

    def test_county_outside_service_area(self) -> None:
        result = validate_customer(CustomerIn.model_validate(customer_payload(county="Cork")))
        assert _codes(result) == {"customer.county": "INVALID_COUNTY"}

    def test_eircode_must_match_county(self) -> None:
        result = validate_customer(CustomerIn.model_validate(customer_payload(county="Kildare")))
        assert _codes(result) == {"customer.eircode": "EIRCODE_COUNTY_MISMATCH"}
        assert result.errors[0].message == (
            "This Eircode doesn't match Kildare. Kildare Eircodes start with: W, R"
        )

    def test_county_is_required(self) -> None:
        payload = customer_payload()
        del payload["county"]
        with pytest.raises(pydantic.ValidationError):
            CustomerIn.model_validate(payload)

    def test_blank_county_is_rejected(self) -> None:
        result = validate_customer(CustomerIn.model_validate(customer_payload(county="  ")))
        assert _codes(result) == {"customer.county": "REQUIRED_FIELD"}

    def test_quote_request_installments(self) -> None:
        payload = QuoteRequestCreate.model_validate({
            "configuration_id": "00000000-0000-0000-0000-000000000001",
            "customer": customer_payload(),
            "expected_installments": 0,
        })
        assert _codes(validate_quote_request(payload)) == {"expected_installments": "INVALID_COUNT"}

    def test_quote_update_checks_supplied_fields(self) -> None:
        ok = QuoteRequestUpdate.model_validate({"customer": {"town": "Bray"}})
        bad = QuoteRequestUpdate.model_validate({"customer": {"email": "nope"}})
        assert validate_quote_request_update(ok).is_valid
        assert _codes(validate_quote_request_update(bad)) == {"customer.email": "INVALID_EMAIL"}


# ─── Payments & paging ───────────────────────────────────────────────────────


class TestValidatePayment:
    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_amount_must_be_positive(self, amount: str) -> None:
        result = validate_payment(PaymentCreate(payment_type="DEPOSIT", amount=Decimal(amount)))
        assert _codes(result) == {"amount": "INVALID_AMOUNT"}

    def test_refund_amount_is_positive_too(self) -> None:
        assert validate_payment(PaymentCreate(payment_type="REFUND", amount=Decimal("50"))).is_valid


class TestValidatePagination:
    def test_valid(self) -> None:
        assert validate_pagination(1, 100).is_valid

    @pytest.mark.parametrize(
        ("page", "limit", "expected"),
        [
            (0, 20, {"page": "INVALID_PAGE"}),
            (1, 0, {"limit": "INVALID_LIMIT"}),
            (1, 101, {"limit": "INVALID_LIMIT"}),
            (-1, 500, {"page": "INVALID_PAGE", "limit": "INVALID_LIMIT"}),
        ],
    )
    def test_invalid(self, page: int, limit: int, expected: dict[str, str]) -> None:
        assert _codes(validate_pagination(page, limit)) == expected
