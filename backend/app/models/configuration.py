from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.core.database import Base


# ─── Enums ────────────────────────────────────────────────────────────────────


class ProductType(str, enum.Enum):
    GARDEN_ROOM = "garden-room"
    HOUSE_EXTENSION = "house-extension"
    HOUSE_BUILD = "house-build"


class FloorType(str, enum.Enum):
    NONE = "none"
    WOODEN = "wooden"
    TILE = "tile"


class InternalWallFinish(str, enum.Enum):
    NONE = "none"
    PANEL = "panel"
    SKIM_PAINT = "skimPaint"


class GlazingElementType(str, enum.Enum):
    WINDOW = "window"
    EXTERNAL_DOOR = "external_door"
    SKYLIGHT = "skylight"


# ─── Product Configuration ────────────────────────────────────────────────────


class ProductConfiguration(Base):
    __tablename__ = "product_configurations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_type: Mapped[ProductType] = mapped_column(Enum(ProductType), nullable=False)

    width_m: Mapped[Decimal] = mapped_column(Numeric(8, 3), nullable=False)
    depth_m: Mapped[Decimal] = mapped_column(Numeric(8, 3), nullable=False)
    height_m: Mapped[Decimal] = mapped_column(Numeric(8, 3), nullable=False)

    cladding_area_sqm: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )

    bathroom_half: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bathroom_three_quarter: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    electrical_switches: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    electrical_sockets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    electrical_downlight: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    electrical_heater: Mapped[int | None] = mapped_column(Integer, nullable=True)
    electrical_undersink_heater: Mapped[int | None] = mapped_column(Integer, nullable=True)
    electrical_elec_boiler: Mapped[int | None] = mapped_column(Integer, nullable=True)

    internal_doors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    internal_wall_finish: Mapped[InternalWallFinish] = mapped_column(
        Enum(InternalWallFinish), nullable=False, default=InternalWallFinish.NONE
    )
    internal_wall_area_sqm: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    heaters: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    floor_type: Mapped[FloorType] = mapped_column(
        Enum(FloorType), nullable=False, default=FloorType.NONE
    )
    floor_area_sqm: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    delivery_distance_km: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    delivery_cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )

    extras_esp_insulation: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    extras_render: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    extras_steel_door: Mapped[int | None] = mapped_column(Integer, nullable=True)
    extras_other: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    permitted_development_flags: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Estimate snapshot, written once per create/update and never re-derived on read
    estimate_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    estimate_subtotal_ex_vat: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    estimate_vat_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    estimate_vat_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    estimate_total_inc_vat: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    glazing_elements: Mapped[list[GlazingElement]] = relationship(
        back_populates="configuration",
        cascade="all, delete-orphan",
        order_by="GlazingElement.position",
    )

    __table_args__ = (
        Index("ix_product_configurations_product_type", "product_type"),
        Index("ix_product_configurations_created_at", "created_at"),
        Index("ix_product_configurations_total", "estimate_total_inc_vat"),
    )


# ─── Glazing Element ──────────────────────────────────────────────────────────


class GlazingElement(Base):
    __tablename__ = "glazing_elements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    configuration_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("product_configurations.id", ondelete="CASCADE"), nullable=False
    )
    element_type: Mapped[GlazingElementType] = mapped_column(
        Enum(GlazingElementType), nullable=False
    )
    width_m: Mapped[Decimal] = mapped_column(Numeric(8, 3), nullable=False)
    height_m: Mapped[Decimal] = mapped_column(Numeric(8, 3), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    configuration: Mapped[ProductConfiguration] = relationship(
        back_populates="glazing_elements"
    )

    __table_args__ = (
        Index("ix_glazing_elements_configuration", "configuration_id"),
    )
