from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.core.database import Base
from backend.app.models.configuration import ProductConfiguration


# ─── Enums ────────────────────────────────────────────────────────────────────


class PaymentStatus(str, enum.Enum):
    PRE_QUOTE = "pre-quote"
    QUOTED = "quoted"
    DEPOSIT_PAID = "deposit-paid"
    IN_PRODUCTION = "in-production"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentType(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    INSTALLMENT = "INSTALLMENT"
    FINAL = "FINAL"
    REFUND = "REFUND"
    ADJUSTMENT = "ADJUSTMENT"

    @property
    def sign(self) -> int:
        """+1 for money received, -1 for money returned or written off."""
        if self in (PaymentType.REFUND, PaymentType.ADJUSTMENT):
            return -1
        return 1


# ─── Quote Request ────────────────────────────────────────────────────────────


class QuoteRequest(Base):
    __tablename__ = "quote_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    quote_number: Mapped[str] = mapped_column(String(32), nullable=False)
    configuration_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("product_configurations.id", ondelete="RESTRICT"), nullable=False
    )

    customer_first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone_prefix: Mapped[str] = mapped_column(String(8), nullable=False)
    customer_phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    customer_address_line1: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_address_line2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    customer_town: Mapped[str | None] = mapped_column(String(100), nullable=True)
    customer_county: Mapped[str] = mapped_column(String(50), nullable=False)
    customer_eircode: Mapped[str] = mapped_column(String(8), nullable=False)

    desired_install_timeframe: Mapped[str | None] = mapped_column(String(100), nullable=True)

    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), nullable=False, default=PaymentStatus.PRE_QUOTE
    )
    total_paid: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    expected_installments: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_payment_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    retention_expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    configuration: Mapped[ProductConfiguration] = relationship()
    payments: Mapped[list[PaymentHistory]] = relationship(
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="PaymentHistory.sequence",
    )

    __table_args__ = (
        UniqueConstraint("quote_number", name="uq_quote_requests_quote_number"),
        Index("ix_quote_requests_configuration", "configuration_id"),
        Index("ix_quote_requests_status", "payment_status"),
        Index("ix_quote_requests_email", "customer_email"),
        Index("ix_quote_requests_submitted_at", "submitted_at"),
        Index("ix_quote_requests_retention", "retention_expires_at"),
    )


# ─── Payment History ──────────────────────────────────────────────────────────


class PaymentHistory(Base):
    __tablename__ = "payment_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    quote_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quote_requests.id", ondelete="CASCADE"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_type: Mapped[PaymentType] = mapped_column(Enum(PaymentType), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    installment_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    quote: Mapped[QuoteRequest] = relationship(back_populates="payments")

    __table_args__ = (
        UniqueConstraint("quote_id", "sequence", name="uq_payment_history_quote_sequence"),
        Index("ix_payment_history_quote", "quote_id"),
    )


# ─── Quote Number Counter ─────────────────────────────────────────────────────


class QuoteNumberCounter(Base):
    """One row per numbering epoch (``Q1-2025``); ``last_value`` is the last issued."""

    __tablename__ = "quote_number_counters"

    epoch: Mapped[str] = mapped_column(String(16), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
