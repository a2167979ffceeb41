"""Rate card for the price estimator.

All amounts are EUR excluding VAT. Unit prices are per item, area rates per
square metre.
"""

from __future__ import annotations

from decimal import Decimal

from backend.app.models.configuration import (
    FloorType,
    GlazingElementType,
    InternalWallFinish,
    ProductType,
)

CURRENCY = "EUR"
VAT_RATE = Decimal("0.23")

BASE_RATE_PER_SQM: dict[ProductType, Decimal] = {
    ProductType.GARDEN_ROOM: Decimal("1200"),
    ProductType.HOUSE_EXTENSION: Decimal("1850"),
    ProductType.HOUSE_BUILD: Decimal("2400"),
}

CLADDING_RATE_PER_SQM = Decimal("85")

FLOOR_RATE_PER_SQM: dict[FloorType, Decimal] = {
    FloorType.NONE: Decimal("0"),
    FloorType.WOODEN: Decimal("65"),
    FloorType.TILE: Decimal("80"),
}

INTERNAL_WALL_RATE_PER_SQM: dict[InternalWallFinish, Decimal] = {
    InternalWallFinish.NONE: Decimal("0"),
    InternalWallFinish.PANEL: Decimal("40"),
    InternalWallFinish.SKIM_PAINT: Decimal("30"),
}

BATHROOM_HALF_UNIT = Decimal("4500")
BATHROOM_THREE_QUARTER_UNIT = Decimal("6500")

GLAZING_RATE_PER_SQM: dict[GlazingElementType, Decimal] = {
    GlazingElementType.WINDOW: Decimal("550"),
    GlazingElementType.EXTERNAL_DOOR: Decimal("750"),
    GlazingElementType.SKYLIGHT: Decimal("900"),
}

ELECTRICAL_SWITCH_UNIT = Decimal("45")
ELECTRICAL_SOCKET_UNIT = Decimal("60")
ELECTRICAL_DOWNLIGHT_UNIT = Decimal("35")
ELECTRICAL_HEATER_UNIT = Decimal("450")
ELECTRICAL_UNDERSINK_HEATER_UNIT = Decimal("350")
ELECTRICAL_BOILER_UNIT = Decimal("1200")

INTERNAL_DOOR_UNIT = Decimal("450")
HEATER_UNIT = Decimal("400")

ESP_INSULATION_RATE_PER_SQM = Decimal("35")
RENDER_RATE_PER_SQM = Decimal("55")
STEEL_DOOR_UNIT = Decimal("1200")
