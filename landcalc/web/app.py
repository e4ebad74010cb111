"""FastAPI application for LandCalc."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from landcalc import __version__
from landcalc.core.logging import configure_logging
from landcalc.db.connection import close_db
from landcalc.exceptions import (
    AssemblyNotFound,
    ChangeOrderNotFound,
    EstimateAlreadyFinalized,
    EstimateNotFound,
    InvalidFormula,
    InvalidInput,
    LandCalcError,
    MaterialNotFound,
)
from landcalc.web.routes import (
    assemblies,
    change_orders,
    dashboard,
    delivery,
    estimates,
    expenses,
    export,
    health,
    pricing,
    reports,
)

# Initialize structured logging
configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_db()


app = FastAPI(
    title="LandCalc API",
    description="Estimating, pricing and budget tracking for landscaping projects",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise


app.add_middleware(RequestLoggingMiddleware)

# Prometheus Metrics
Instrumentator().instrument(app).expose(app)


# Exception Handlers
STATUS_BY_ERROR: dict[type[LandCalcError], int] = {
    InvalidInput: 400,
    InvalidFormula: 400,
    AssemblyNotFound: 404,
    EstimateNotFound: 404,
    ChangeOrderNotFound: 404,
    MaterialNotFound: 404,
    EstimateAlreadyFinalized: 409,
}


@app.exception_handler(LandCalcError)
async def landcalc_exception_handler(request: Request, exc: LandCalcError):
    """Map engine errors to HTTP status codes (500 for anything unmapped)."""
    status_code = next(
        (code for error, code in STATUS_BY_ERROR.items() if isinstance(exc, error)),
        500,
    )
    logger.warning("request_rejected", error=type(exc).__name__, detail=str(exc), status_code=status_code)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies and parameters are client errors (400)."""
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


# Include Routers
app.include_router(health.router)
app.include_router(estimates.router)
app.include_router(pricing.router)
app.include_router(delivery.router)
app.include_router(reports.router)
app.include_router(expenses.router)
app.include_router(change_orders.router)
app.include_router(dashboard.router)
app.include_router(assemblies.router)
app.include_router(export.router)
