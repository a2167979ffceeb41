"""Configurator wizard steps: their configs, validation and derived values."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from pydantic import BaseModel, Field

from backend.app.models.configuration import FloorType

STEP_NAMES = ("size", "openings", "cladding", "bathroom", "floor", "extras", "summary")

WALL_HEIGHT_M = Decimal("2.4")
MIN_SIDE_MM = 2000
MAX_SIDE_MM = 8000
CLADDING_MATERIALS = ("panel", "timber", "render")

_SQM = Decimal("0.01")
_MM_PER_M = Decimal("1000")


def mm_to_m(value: int) -> Decimal:
    return Decimal(value) / _MM_PER_M


# ─── Step configs ─────────────────────────────────────────────────────────────


class SizeConfig(BaseModel):
    width_mm: int = 4000
    depth_mm: int = 3000

    @property
    def floor_area_sqm(self) -> Decimal:
        return (mm_to_m(self.width_mm) * mm_to_m(self.depth_mm)).quantize(_SQM, ROUND_HALF_UP)

    @property
    def perimeter_m(self) -> Decimal:
        return 2 * (mm_to_m(self.width_mm) + mm_to_m(self.depth_mm))


class Opening(BaseModel):
    width_mm: int
    height_mm: int

    @property
    def area_sqm(self) -> Decimal:
        return mm_to_m(self.width_mm) * mm_to_m(self.height_mm)


class OpeningsConfig(BaseModel):
    windows: list[Opening] = Field(default_factory=list)
    external_doors: list[Opening] = Field(default_factory=list)
    skylights: list[Opening] = Field(default_factory=list)

    @property
    def wall_openings_area_sqm(self) -> Decimal:
        # Skylights sit in the roof, not the walls
        return sum((o.area_sqm for o in self.windows + self.external_doors), Decimal("0"))


class CladdingConfig(BaseModel):
    material: str | None = None
    color: str | None = None
    area_sqm: Decimal = Decimal("0")


class BathroomConfig(BaseModel):
    type: Literal["none", "half", "three-quarter"] = "none"
    count: int = 0


class FloorConfig(BaseModel):
    type: FloorType = FloorType.NONE
    area_sqm: Decimal = Decimal("0")


class ExtraSelection(BaseModel):
    title: str
    unit_price: Decimal = Field(decimal_places=2)
    quantity: int = 1


class ExtrasConfig(BaseModel):
    selected: list[ExtraSelection] = Field(default_factory=list)
    custom: list[ExtraSelection] = Field(default_factory=list)
    building_area_sqm: Decimal = Decimal("0")


class SummaryConfig(BaseModel):
    pass


STEP_MODELS: dict[str, type[BaseModel]] = {
    "size": SizeConfig,
    "openings": OpeningsConfig,
    "cladding": CladdingConfig,
    "bathroom": BathroomConfig,
    "floor": FloorConfig,
    "extras": ExtrasConfig,
    "summary": SummaryConfig,
}


@dataclass
class StepState:
    config: BaseModel
    is_valid: bool = True
    errors: list[str] = field(default_factory=list)


# ─── Validation ───────────────────────────────────────────────────────────────


def validate_size(config: SizeConfig) -> list[str]:
    errors = []
    for label, value in (("Width", config.width_mm), ("Depth", config.depth_mm)):
        if not MIN_SIDE_MM <= value <= MAX_SIDE_MM:
            errors.append(
                f"{label} must be between {MIN_SIDE_MM // 1000} and {MAX_SIDE_MM // 1000} metres"
            )
    return errors


def validate_openings(config: OpeningsConfig) -> list[str]:
    errors = []
    for group in ("windows", "external_doors", "skylights"):
        for i, opening in enumerate(getattr(config, group)):
            if opening.width_mm <= 0 or opening.height_mm <= 0:
                errors.append(f"{group}[{i}] must have a positive width and height")
    return errors


def validate_cladding(config: CladdingConfig) -> list[str]:
    errors = []
    if config.material not in CLADDING_MATERIALS:
        errors.append(f"Choose a cladding material: {', '.join(CLADDING_MATERIALS)}")
    if not (config.color or "").strip():
        errors.append("Choose a cladding colour")
    if config.area_sqm < 0:
        errors.append("Cladding area cannot be negative")
    return errors


def validate_bathroom(config: BathroomConfig) -> list[str]:
    if config.count < 0:
        return ["Bathroom count cannot be negative"]
    if config.type != "none" and config.count < 1:
        return ["Choose how many bathrooms to include"]
    return []


def validate_floor(config: FloorConfig) -> list[str]:
    if config.area_sqm < 0:
        return ["Floor area cannot be negative"]
    return []


def validate_extras(config: ExtrasConfig) -> list[str]:
    errors = []
    for i, extra in enumerate(config.selected + config.custom):
        if not extra.title.strip():
            errors.append(f"Extra #{i + 1} needs a title")
        if extra.unit_price < 0:
            errors.append(f"{extra.title or f'Extra #{i + 1}'} cannot have a negative price")
        if extra.quantity < 1:
            errors.append(f"{extra.title or f'Extra #{i + 1}'} needs a quantity of at least 1")
    return errors


STEP_VALIDATORS: dict[str, Callable[..., list[str]]] = {
    "size": validate_size,
    "openings": validate_openings,
    "cladding": validate_cladding,
    "bathroom": validate_bathroom,
    "floor": validate_floor,
    "extras": validate_extras,
}


def evaluate_step(name: str, config: BaseModel) -> StepState:
    errors = STEP_VALIDATORS[name](config) if name in STEP_VALIDATORS else []
    return StepState(config=config, is_valid=not errors, errors=errors)


# ─── Derived values ───────────────────────────────────────────────────────────


def cladding_area_sqm(size: SizeConfig, openings: OpeningsConfig) -> Decimal:
    """External wall area: perimeter × standard wall height, less windows and doors."""
    gross = size.perimeter_m * WALL_HEIGHT_M
    net = max(gross - openings.wall_openings_area_sqm, Decimal("0"))
    return net.quantize(_SQM, ROUND_HALF_UP)
