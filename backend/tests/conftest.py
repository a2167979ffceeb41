"""Shared test fixtures.

Tests run against an in-memory SQLite database. The schema is created before
each test and dropped afterwards, so tests never see each other's rows.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"

from typing import Any, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from backend.app.core.database import Base, SessionLocal, engine, get_db  # noqa: E402
from backend.app.main import app  # noqa: E402
from backend.app.models import audit, configuration, quotes  # noqa: E402,F401
from backend.app.schemas.configurations import ProductConfigurationCreate  # noqa: E402
from backend.app.schemas.quotes import QuoteRequestCreate  # noqa: E402
from backend.app.services.configurations import create_configuration  # noqa: E402
from backend.app.services.quotes import create_quote  # noqa: E402


@pytest.fixture(autouse=True)
def _schema() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """TestClient wired to the test session."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ─── Payloads ─────────────────────────────────────────────────────────────────


def configuration_payload(**overrides: Any) -> dict[str, Any]:
    """A 4 m × 3 m garden room with a wooden floor and 28.8 m² of cladding."""
    payload: dict[str, Any] = {
        "product_type": "garden-room",
        "size": {"width_m": "4", "depth_m": "3"},
        "cladding": {"area_sqm": "28.8"},
        "floor": {"type": "wooden", "area_sqm": "12"},
    }
    payload.update(overrides)
    return payload


def customer_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "first_name": "Aoife",
        "last_name": "Byrne",
        "email": "aoife.byrne@example.ie",
        "phone": {"country_prefix": "+353", "number": "871234567"},
        "address_line1": "12 Main Street",
        "town": "Rathmines",
        "county": "Dublin",
        "eircode": "D06 F2X4",
    }
    payload.update(overrides)
    return payload


def quote_payload(configuration_id: str, **customer_overrides: Any) -> dict[str, Any]:
    return {
        "configuration_id": configuration_id,
        "customer": customer_payload(**customer_overrides),
        "desired_install_timeframe": "Within 3 months",
    }


# ─── Stored records ───────────────────────────────────────────────────────────


@pytest.fixture()
def stored_configuration(db: Session) -> dict:
    return create_configuration(
        db, ProductConfigurationCreate.model_validate(configuration_payload())
    )


@pytest.fixture()
def stored_quote(db: Session, stored_configuration: dict) -> dict:
    return create_quote(
        db, QuoteRequestCreate.model_validate(quote_payload(stored_configuration["id"]))
    )
