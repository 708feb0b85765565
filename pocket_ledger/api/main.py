"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from pocket_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from pocket_ledger.api.v1 import rates, recurring, transactions
from pocket_ledger.infrastructure.observability.logging import setup_logging
from pocket_ledger.config import settings

setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Pocket Ledger",
        description="Personal finance ledger with multi-currency rates and recurring transactions",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Last added runs first
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(transactions.router, prefix="/v1", tags=["ledger"])
    app.include_router(rates.router, prefix="/v1", tags=["rates"])
    app.include_router(recurring.router, prefix="/v1", tags=["recurring"])

    return app


app = create_app()
