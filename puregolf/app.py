from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from puregolf.api.health import health as _health_handler
from puregolf.api.routers.caddy import router as caddy_router
from puregolf.config import get_settings
from puregolf.metrics import HttpMetricsMiddleware, metrics_response

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Pure Golf Caddy")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(HttpMetricsMiddleware)

    app.include_router(caddy_router)
    app.add_api_route(
        "/health",
        _health_handler,
        methods=["GET"],
        response_model=None,
        tags=["health"],
    )

    metrics_router = APIRouter()

    @metrics_router.get("/metrics", include_in_schema=False)
    async def _metrics_endpoint(request: Request):
        return await metrics_response(request)

    app.include_router(metrics_router)
    logger.debug("caddy app created", extra={"cors_origins": settings.cors_origins})
    return app


app = create_app()
