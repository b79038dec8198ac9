"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config.settings import settings
from src.container import build_container
from src.ps_common.errors import AppError, InternalError, ValidationError
from src.ps_common.response import error_response
from src.ps_gateway.middleware.request_log import RequestLogMiddleware
from src.ps_invoice.api.router import router as invoice_router
from src.ps_pricing.api.router import router as pricing_router
from src.ps_settlement.api.router import router as settlement_router
from src.ps_wallet.api.router import router as wallet_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: configure logging, build the container. Shutdown: close it."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if getattr(app.state, "container", None) is None:
        app.state.container = build_container(settings)
    yield
    container = getattr(app.state, "container", None)
    if container is not None:
        await container.aclose()
        app.state.container = None


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, _request_id(request))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}"
        for err in exc.errors()
    )
    err = ValidationError(details)
    resp = error_response(err.code, err.message, _request_id(request))
    return JSONResponse(status_code=err.http_status, content=resp.model_dump())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    err = InternalError()
    resp = error_response(err.code, err.message, _request_id(request))
    return JSONResponse(status_code=err.http_status, content=resp.model_dump())


app.include_router(invoice_router, prefix="/api")
app.include_router(settlement_router, prefix="/api")
app.include_router(pricing_router, prefix="/api")
app.include_router(wallet_router, prefix="/api")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
