"""FastAPI app factory: logging middleware, error mapping, /ping and the API routes."""
from __future__ import annotations

import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api import router as api_router
from .config import Settings, load_settings
from .domain.errors import ServiceError
from .logging_conf import get_logger, setup_logging
from .service import COLLECTIONS, build_services
from .service.tokens import Clock

# Configure logging before anything else.
setup_logging()
logger = get_logger("app")


def _install_error_handlers(app: FastAPI) -> None:
    """Every non-2xx answer is a JSON object with an ``error`` field."""

    @app.exception_handler(ServiceError)
    async def _service_error(request: Request, exc: ServiceError) -> JSONResponse:
        level = logger.error if exc.status_code >= 500 else logger.info
        level(
            "request.failed",
            extra={
                "event": "request_failed",
                "path": request.url.path,
                "method": request.method,
                "code": exc.code,
                "status_code": exc.status_code,
                "request_id": getattr(request.state, "request_id", None),
            },
            exc_info=exc.__cause__ if exc.status_code >= 500 and exc.__cause__ else None,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths (404) and unsupported methods (405) from the router.
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message, "code": f"http_{exc.status_code}"},
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields", "code": "missing_fields"},
        )

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": "internal_error"},
        )


def create_app(settings: Settings | None = None, *, clock: Clock | None = None) -> FastAPI:
    settings = settings or load_settings()
    services = build_services(settings, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        services.store.ensure_collections(*COLLECTIONS)
        logger.info(
            "startup",
            extra={
                "event": "startup",
                "env": settings.env_name,
                "data_dir": str(settings.data_dir),
                "max_checks": settings.max_checks,
            },
        )
        yield
        logger.info("shutdown", extra={"event": "shutdown"})

    app = FastAPI(title="Uptime Checks API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    @app.middleware("http")
    async def request_logger(request: Request, call_next: Callable[[Request], Response]):
        """Log start/end of each request under a correlation id.

        An incoming X-Request-ID is reused, otherwise one is minted; either
        way it is echoed on the response.
        """
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id

        start = time.perf_counter()
        logger.info(
            "request.start",
            extra={
                "event": "request_start",
                "method": request.method,
                "path": request.url.path,
                "request_id": request_id,
            },
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.error",
                extra={
                    "event": "request_error",
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": request_id,
                },
            )
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={
                "event": "request_end",
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
                "request_id": request_id,
            },
        )
        return response

    _install_error_handlers(app)

    @app.get("/ping", summary="Liveness check")
    async def ping() -> JSONResponse:
        return JSONResponse(content={})

    app.include_router(api_router)

    return app


# ASGI entrypoint for uvicorn: `uvicorn app.main:app --port 3000`
app = create_app()
