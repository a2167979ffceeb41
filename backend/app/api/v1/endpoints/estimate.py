from __future__ import annotations

from fastapi import APIRouter

from backend.app.api.deps import http_error
from backend.app.core.errors import QuoteEngineError
from backend.app.schemas.configurations import EstimateResponse, ProductConfigurationCreate
from backend.app.services.configurations import price_configuration

router = APIRouter()


@router.post("", response_model=EstimateResponse)
def estimate_configuration(payload: ProductConfigurationCreate) -> dict:
    """Price a configuration without storing it."""
    try:
        return price_configuration(payload)
    except QuoteEngineError as e:
        raise http_error(e)
