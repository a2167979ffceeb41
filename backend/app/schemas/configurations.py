from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from backend.app.models.configuration import FloorType, InternalWallFinish
from backend.app.schemas.common import PaginationOut

DEFAULT_HEIGHT_M = Decimal("2.5")

# Input precision matches the storage columns, so a stored configuration
# re-prices to the same total.
LENGTH_PLACES = 3
AREA_PLACES = 2
MONEY_PLACES = 2


# ─── Request ──────────────────────────────────────────────────────────────────
#
# ProductConfigurationCreate is the single boundary schema: every optional
# field carries its default here, so pricing and validation never guess.


class SizeIn(BaseModel):
    width_m: Decimal = Field(decimal_places=LENGTH_PLACES)
    depth_m: Decimal = Field(decimal_places=LENGTH_PLACES)
    height_m: Decimal = Field(DEFAULT_HEIGHT_M, decimal_places=LENGTH_PLACES)


class CladdingIn(BaseModel):
    area_sqm: Decimal = Field(Decimal("0"), decimal_places=AREA_PLACES)


class FloorIn(BaseModel):
    type: FloorType = FloorType.NONE
    area_sqm: Decimal = Field(decimal_places=AREA_PLACES)


class InternalWallIn(BaseModel):
    finish: InternalWallFinish = InternalWallFinish.NONE
    area_sqm: Decimal | None = Field(None, decimal_places=AREA_PLACES)


class BathroomIn(BaseModel):
    half: int = 0
    three_quarter: int = 0


class ElectricalIn(BaseModel):
    switches: int = 0
    sockets: int = 0
    downlight: int = 0
    heater: int | None = None
    undersink_heater: int | None = None
    elec_boiler: int | None = None


class GlazingElementIn(BaseModel):
    width_m: Decimal = Field(decimal_places=LENGTH_PLACES)
    height_m: Decimal = Field(decimal_places=LENGTH_PLACES)


class GlazingIn(BaseModel):
    windows: list[GlazingElementIn] = Field(default_factory=list)
    external_doors: list[GlazingElementIn] = Field(default_factory=list)
    skylights: list[GlazingElementIn] = Field(default_factory=list)


class DeliveryIn(BaseModel):
    distance_km: Decimal | None = Field(None, decimal_places=AREA_PLACES)
    cost: Decimal = Field(Decimal("0"), decimal_places=MONEY_PLACES)


class ExtraItem(BaseModel):
    title: str
    cost: Decimal = Field(decimal_places=MONEY_PLACES)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return v.strip()


class ExtrasIn(BaseModel):
    esp_insulation: Decimal | None = Field(None, decimal_places=AREA_PLACES)
    render: Decimal | None = Field(None, decimal_places=AREA_PLACES)
    steel_door: int | None = None
    other: list[ExtraItem] = Field(default_factory=list)


class DevelopmentFlag(BaseModel):
    code: str
    label: str


class EstimateSnapshot(BaseModel):
    currency: str = "EUR"
    subtotal_ex_vat: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total_inc_vat: Decimal


class ProductConfigurationCreate(BaseModel):
    # Plain string so an unknown type is reported as INVALID_PRODUCT_TYPE
    product_type: str
    size: SizeIn
    floor: FloorIn
    cladding: CladdingIn = Field(default_factory=CladdingIn)
    internal_wall: InternalWallIn = Field(default_factory=InternalWallIn)
    internal_doors: int = 0
    heaters: int = 0
    bathroom: BathroomIn = Field(default_factory=BathroomIn)
    electrical: ElectricalIn = Field(default_factory=ElectricalIn)
    glazing: GlazingIn = Field(default_factory=GlazingIn)
    delivery: DeliveryIn = Field(default_factory=DeliveryIn)
    extras: ExtrasIn = Field(default_factory=ExtrasIn)
    permitted_development_flags: list[DevelopmentFlag] = Field(default_factory=list)
    notes: str = ""
    estimate: EstimateSnapshot | None = None


class SizeUpdate(BaseModel):
    width_m: Decimal | None = Field(None, decimal_places=LENGTH_PLACES)
    depth_m: Decimal | None = Field(None, decimal_places=LENGTH_PLACES)
    height_m: Decimal | None = Field(None, decimal_places=LENGTH_PLACES)


class FloorUpdate(BaseModel):
    type: FloorType | None = None
    area_sqm: Decimal | None = Field(None, decimal_places=AREA_PLACES)


class ProductConfigurationUpdate(BaseModel):
    """Partial update; nested objects are merged, lists are replaced."""

    product_type: str | None = None
    size: SizeUpdate | None = None
    floor: FloorUpdate | None = None
    cladding: CladdingIn | None = None
    internal_wall: InternalWallIn | None = None
    internal_doors: int | None = None
    heaters: int | None = None
    bathroom: BathroomIn | None = None
    electrical: ElectricalIn | None = None
    glazing: GlazingIn | None = None
    delivery: DeliveryIn | None = None
    extras: ExtrasIn | None = None
    permitted_development_flags: list[DevelopmentFlag] | None = None
    notes: str | None = None


# ─── Response ─────────────────────────────────────────────────────────────────


class FieldIssueOut(BaseModel):
    field: str
    message: str
    code: str


class PriceLineOut(BaseModel):
    key: str
    label: str
    amount: str


class EstimateOut(BaseModel):
    currency: str
    subtotal_ex_vat: str
    vat_rate: str
    vat_amount: str
    total_inc_vat: str


class EstimateResponse(BaseModel):
    estimate: EstimateOut
    breakdown: list[PriceLineOut]
    warnings: list[FieldIssueOut]


class GlazingElementOut(BaseModel):
    width_m: str
    height_m: str


class GlazingOut(BaseModel):
    windows: list[GlazingElementOut]
    external_doors: list[GlazingElementOut]
    skylights: list[GlazingElementOut]


class ProductConfigurationOut(BaseModel):
    id: str
    product_type: str
    size: dict[str, str]
    cladding: dict[str, str]
    floor: dict[str, str]
    internal_wall: dict[str, str | None]
    internal_doors: int
    heaters: int
    bathroom: dict[str, int]
    electrical: dict[str, int | None]
    glazing: GlazingOut
    delivery: dict[str, str | None]
    extras: dict
    permitted_development_flags: list[DevelopmentFlag]
    notes: str
    estimate: EstimateOut
    created_at: str | None
    updated_at: str | None
    warnings: list[FieldIssueOut] = []


class ProductConfigurationPage(BaseModel):
    items: list[ProductConfigurationOut]
    pagination: PaginationOut
