from __future__ import annotations

from fastapi import Header, HTTPException

from backend.app.core.errors import QuoteEngineError


def get_actor(x_actor: str | None = Header(default=None)) -> str | None:
    """Name of the staff member or system making the change, for the audit trail."""
    if x_actor is None or not x_actor.strip():
        return None
    return x_actor.strip()[:100]


def http_error(exc: QuoteEngineError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())
