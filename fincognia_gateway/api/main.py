"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from fincognia_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from fincognia_gateway.api.v1 import buffer, events, forecast, ingestion, money_weather, subscriptions, transactions
from fincognia_gateway.infrastructure.database.session import init_db
from fincognia_gateway.infrastructure.observability.logging import setup_logging
from fincognia_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Fincognia Gateway",
        description="Transaction ingestion, recurring payment detection and cashflow forecasting",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(ingestion.router, prefix="/v1", tags=["ingestion"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(forecast.router, prefix="/v1", tags=["forecast"])
    app.include_router(subscriptions.router, prefix="/v1", tags=["subscriptions"])
    app.include_router(buffer.router, prefix="/v1", tags=["buffer"])
    app.include_router(events.router, prefix="/v1", tags=["events"])
    app.include_router(money_weather.router, prefix="/v1", tags=["money-weather"])

    return app


app = create_app()
