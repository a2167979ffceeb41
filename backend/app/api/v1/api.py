from fastapi import APIRouter

from backend.app.api.v1.endpoints import configurations, estimate, health, quotes

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(estimate.router, prefix="/estimate", tags=["estimate"])
api_router.include_router(configurations.router, prefix="/configurations", tags=["configurations"])
api_router.include_router(quotes.router, prefix="/quotes", tags=["quotes"])
