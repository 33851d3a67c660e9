"""FastAPI application factory"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from notion_finance.api.errors import register_exception_handlers
from notion_finance.api.middleware import MetricsMiddleware, RequestIDMiddleware
from notion_finance.api.v1 import financial, health, spending
from notion_finance.config import settings
from notion_finance.infrastructure.observability.logging import setup_logging
from notion_finance.services.finance import FinanceService

# Setup structured logging
setup_logging(settings.log_level)


def create_app(finance_service: Optional[FinanceService] = None) -> FastAPI:
    """Create and configure FastAPI application.

    When ``finance_service`` is given the caller owns its lifecycle;
    otherwise one is built from settings on startup and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if finance_service is not None:
            yield
            return
        service = FinanceService()
        await service.initialize()
        app.state.finance_service = service
        try:
            yield
        finally:
            await service.aclose()

    app = FastAPI(
        title="Notion Finance Service",
        description="Spending request decision support backed by a Notion workspace",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    if finance_service is not None:
        app.state.finance_service = finance_service

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(spending.router, prefix="/v1", tags=["spending"])
    app.include_router(financial.router, prefix="/v1", tags=["financial"])
    app.include_router(health.router, prefix="/v1", tags=["health"])

    return app


app = create_app()
