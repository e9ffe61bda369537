"""
StarLedger - HTTP entry point.

The ledger lives in memory: every start begins with a fresh chain holding
only the genesis record.

Run with: uvicorn starledger.main:app
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from .api import RequestContextMiddleware, router
from .core import LedgerService
from .observability import check_health, get_logger, get_metrics, setup_logging


logger = get_logger(__name__)


def create_app(ledger: Optional[LedgerService] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        ledger: Ledger to serve. If None, a new in-memory ledger is created
                at startup (genesis included) before any request is accepted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.ledger = ledger if ledger is not None else LedgerService()

        findings = app.state.ledger.validate()
        if findings:
            logger.error("Chain integrity check FAILED!", finding_count=len(findings))
        else:
            logger.info("Chain integrity verified OK", height=app.state.ledger.height())

        logger.info(
            "Application startup complete",
            height=app.state.ledger.height(),
            store_type=type(app.state.ledger.record_store).__name__,
            replay_protection=app.state.ledger.verifier.replay_protection,
        )

        yield

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="StarLedger",
        description=(
            "Append-only star registry. Every record is hashed and chained; "
            "appends require a signed, time-boxed ownership challenge."
        ),
        lifespan=lifespan,
    )
    app.add_middleware(RequestContextMiddleware)
    app.include_router(router)

    @app.get("/health")
    def health():
        status = check_health(app.state.ledger)
        return JSONResponse(
            status_code=200 if status.healthy else 503,
            content={
                "healthy": status.healthy,
                "checks": status.checks,
                "duration_ms": status.duration_ms,
            },
        )

    @app.get("/metrics")
    def metrics():
        return get_metrics().get_summary()

    return app


def _build_default_app() -> FastAPI:
    setup_logging()
    return create_app()


app = _build_default_app()
