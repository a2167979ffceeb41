import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.api.v1.api import api_router
from backend.app.core.config import settings
from backend.app.core.errors import QuoteEngineError
from backend.app.core.logging import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Strata Quote Engine")

# ─── CORS: configurator front-end only ────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Accept", "X-Actor"],
)


# ─── Error rendering ──────────────────────────────────────────────────────────


@app.exception_handler(QuoteEngineError)
def quote_engine_error_handler(_request: Request, exc: QuoteEngineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled %s: %s", exc.code, exc.message, exc_info=exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


@app.exception_handler(Exception)
def unexpected_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
    )


app.include_router(api_router)
