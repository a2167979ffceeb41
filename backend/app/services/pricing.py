"""Price estimation for product configurations.

The estimate is additive: each component of the configuration contributes an
independent line, the lines are summed into an ex-VAT subtotal and VAT is
applied once on top. Nothing here touches the database or mutates its input.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from backend.app.models.configuration import (
    FloorType,
    GlazingElementType,
    InternalWallFinish,
    ProductType,
)
from backend.app.schemas.configurations import (
    EstimateSnapshot,
    GlazingElementIn,
    ProductConfigurationCreate,
)
from backend.app.services import rates

CENT = Decimal("0.01")
ZERO = Decimal("0")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceLine:
    key: str
    label: str
    amount: Decimal

    def as_dict(self) -> dict[str, str]:
        return {"key": self.key, "label": self.label, "amount": str(self.amount)}


@dataclass(frozen=True)
class PriceEstimate:
    currency: str
    subtotal_ex_vat: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total_inc_vat: Decimal
    breakdown: tuple[PriceLine, ...] = ()

    def to_snapshot(self) -> EstimateSnapshot:
        return EstimateSnapshot(
            currency=self.currency,
            subtotal_ex_vat=self.subtotal_ex_vat,
            vat_rate=self.vat_rate,
            vat_amount=self.vat_amount,
            total_inc_vat=self.total_inc_vat,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "subtotal_ex_vat": str(self.subtotal_ex_vat),
            "vat_rate": str(self.vat_rate),
            "vat_amount": str(self.vat_amount),
            "total_inc_vat": str(self.total_inc_vat),
        }


# ─── Components ───────────────────────────────────────────────────────────────


def base_cost(product_type: ProductType | str, width_m: Decimal, depth_m: Decimal) -> Decimal:
    rate = rates.BASE_RATE_PER_SQM[ProductType(product_type)]
    return width_m * depth_m * rate


def cladding_cost(area_sqm: Decimal) -> Decimal:
    return area_sqm * rates.CLADDING_RATE_PER_SQM


def floor_cost(floor_type: FloorType, area_sqm: Decimal) -> Decimal:
    return area_sqm * rates.FLOOR_RATE_PER_SQM[floor_type]


def internal_wall_cost(finish: InternalWallFinish, area_sqm: Decimal | None) -> Decimal:
    if area_sqm is None:
        return ZERO
    return area_sqm * rates.INTERNAL_WALL_RATE_PER_SQM[finish]


def bathroom_cost(half: int, three_quarter: int) -> Decimal:
    return (
        rates.BATHROOM_HALF_UNIT * half
        + rates.BATHROOM_THREE_QUARTER_UNIT * three_quarter
    )


def glazing_cost(element_type: GlazingElementType, elements: list[GlazingElementIn]) -> Decimal:
    rate = rates.GLAZING_RATE_PER_SQM[element_type]
    return sum((e.width_m * e.height_m * rate for e in elements), ZERO)


def electrical_cost(config: ProductConfigurationCreate) -> Decimal:
    e = config.electrical
    return (
        rates.ELECTRICAL_SWITCH_UNIT * e.switches
        + rates.ELECTRICAL_SOCKET_UNIT * e.sockets
        + rates.ELECTRICAL_DOWNLIGHT_UNIT * e.downlight
        + rates.ELECTRICAL_HEATER_UNIT * (e.heater or 0)
        + rates.ELECTRICAL_UNDERSINK_HEATER_UNIT * (e.undersink_heater or 0)
        + rates.ELECTRICAL_BOILER_UNIT * (e.elec_boiler or 0)
    )


def extras_cost(config: ProductConfigurationCreate) -> Decimal:
    x = config.extras
    named = (
        (x.esp_insulation or ZERO) * rates.ESP_INSULATION_RATE_PER_SQM
        + (x.render or ZERO) * rates.RENDER_RATE_PER_SQM
        + rates.STEEL_DOOR_UNIT * (x.steel_door or 0)
    )
    return named + sum((item.cost for item in x.other), ZERO)


# ─── Estimate ─────────────────────────────────────────────────────────────────


def estimate(config: ProductConfigurationCreate) -> PriceEstimate:
    """Price a configuration. Raises ``ValueError`` for an unknown product type."""
    size = config.size
    candidates = [
        ("base", "Base structure", base_cost(config.product_type, size.width_m, size.depth_m)),
        ("cladding", "Cladding", cladding_cost(config.cladding.area_sqm)),
        ("floor", "Floor finish", floor_cost(config.floor.type, config.floor.area_sqm)),
        (
            "internal_wall",
            "Internal wall finish",
            internal_wall_cost(config.internal_wall.finish, config.internal_wall.area_sqm),
        ),
        ("internal_doors", "Internal doors", rates.INTERNAL_DOOR_UNIT * config.internal_doors),
        ("heaters", "Heaters", rates.HEATER_UNIT * config.heaters),
        ("bathroom", "Bathrooms", bathroom_cost(config.bathroom.half, config.bathroom.three_quarter)),
        ("electrical", "Electrical", electrical_cost(config)),
        ("windows", "Windows", glazing_cost(GlazingElementType.WINDOW, config.glazing.windows)),
        (
            "external_doors",
            "External doors",
            glazing_cost(GlazingElementType.EXTERNAL_DOOR, config.glazing.external_doors),
        ),
        ("skylights", "Skylights", glazing_cost(GlazingElementType.SKYLIGHT, config.glazing.skylights)),
        ("extras", "Extras", extras_cost(config)),
        ("delivery", "Delivery", config.delivery.cost),
    ]

    breakdown = tuple(
        PriceLine(key=key, label=label, amount=_money(amount))
        for key, label, amount in candidates
        if amount
    )
    subtotal = sum((line.amount for line in breakdown), ZERO)
    subtotal = _money(subtotal)
    vat_amount = _money(subtotal * rates.VAT_RATE)

    return PriceEstimate(
        currency=rates.CURRENCY,
        subtotal_ex_vat=subtotal,
        vat_rate=rates.VAT_RATE,
        vat_amount=vat_amount,
        total_inc_vat=subtotal + vat_amount,
        breakdown=breakdown,
    )
