from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from backend.app.models.quotes import PaymentStatus, PaymentType
from backend.app.schemas.common import PaginationOut
from backend.app.schemas.configurations import EstimateOut


# ─── Request ──────────────────────────────────────────────────────────────────


class PhoneIn(BaseModel):
    country_prefix: str = "+353"
    number: str

    @field_validator("country_prefix", "number")
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip()


class CustomerIn(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: PhoneIn
    address_line1: str
    address_line2: str | None = None
    town: str | None = None
    county: str
    eircode: str

    @field_validator("first_name", "last_name", "email", "address_line1", "county", "eircode")
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip()


class PhoneUpdate(BaseModel):
    country_prefix: str | None = None
    number: str | None = None


class CustomerUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: PhoneUpdate | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    town: str | None = None
    county: str | None = None
    eircode: str | None = None


class QuoteRequestCreate(BaseModel):
    configuration_id: UUID
    customer: CustomerIn
    desired_install_timeframe: str | None = None
    expected_installments: int | None = None


class QuoteRequestUpdate(BaseModel):
    customer: CustomerUpdate | None = None
    desired_install_timeframe: str | None = None
    expected_installments: int | None = None


class QuoteTransitionIn(BaseModel):
    status: PaymentStatus
    note: str | None = None


class PaymentCreate(BaseModel):
    payment_type: PaymentType
    amount: Decimal
    installment_number: int | None = None
    note: str | None = None
    recorded_by: str | None = None


# ─── Response ─────────────────────────────────────────────────────────────────


class PaymentOut(BaseModel):
    id: str
    sequence: int
    payment_type: str
    amount: str
    installment_number: int | None
    note: str | None
    recorded_by: str | None
    created_at: str | None


class PaymentSummaryOut(BaseModel):
    status: str
    total_paid: str
    total_due: str
    balance_due: str
    expected_installments: int | None
    last_payment_at: str | None
    history: list[PaymentOut] = Field(default_factory=list)


class CustomerOut(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: dict[str, str]
    address_line1: str
    address_line2: str | None
    town: str | None
    county: str
    eircode: str


class QuoteOut(BaseModel):
    id: str
    quote_number: str
    configuration_id: str
    customer: CustomerOut
    desired_install_timeframe: str | None
    payment: PaymentSummaryOut
    estimate: EstimateOut
    submitted_at: str
    retention_expires_at: str
    created_at: str | None
    updated_at: str | None


class QuotePage(BaseModel):
    items: list[QuoteOut]
    pagination: PaginationOut


class PaymentRecordedOut(BaseModel):
    quote: QuoteOut
    payment: PaymentOut
    warnings: list[dict[str, str]] = Field(default_factory=list)


class QuoteSummaryOut(BaseModel):
    total_quotes: int
    by_status: dict[str, int]
    total_value_inc_vat: str
    total_paid: str
