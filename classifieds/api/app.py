"""FastAPI application factory.

:func:`create_app` wires together:

* the :data:`~classifieds.api.routes.router` and a ``/health`` probe,
* the store, held on ``app.state.store``.  When the caller does not supply
  one, the lifespan opens a fresh :class:`~classifieds.storage.MemoryStore`
  on startup and closes it on shutdown,
* exception handlers translating the error taxonomy to HTTP statuses,
* a request-logging middleware that tags every log line emitted while a
  request is handled with a short request id.

Error mapping
-------------
=============================================  ======
Exception                                      Status
=============================================  ======
request body / query validation failure        400
:exc:`InputValidationError`                    400
:exc:`NotFoundError`                           404
:exc:`DuplicateUsernameError`                  409
:exc:`StoreClosedError`                        503
anything else                                  500
=============================================  ======
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from classifieds import __version__
from classifieds.api.routes import router
from classifieds.core.exceptions import (
    DuplicateUsernameError,
    InputValidationError,
    NotFoundError,
    StoreClosedError,
)
from classifieds.core.logging_config import REQUEST_ID_CTX
from classifieds.core.settings import Settings
from classifieds.storage.base import MarketplaceStore
from classifieds.storage.memory import MemoryStore

__all__ = ["create_app"]

logger = logging.getLogger(__name__)

#: Request log lines longer than this are cut and end with an ellipsis.
_MAX_LOG_LINE = 80


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    store: MarketplaceStore | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration.  Defaults to ``Settings()`` (env + ``.env``).
        store: Store to serve.  When given, the caller owns its lifecycle and
            the app neither opens nor closes it.  When ``None``, the app
            opens a :class:`MemoryStore` during startup (seeded according to
            ``settings.seed_data``) and closes it during shutdown.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.store is not None:
            yield
            return
        owned = MemoryStore()
        await owned.open(seed=settings.seed_data)
        app.state.store = owned
        try:
            yield
        finally:
            app.state.store = None
            await owned.close()

    app = FastAPI(title="classifieds", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.middleware("http")(_log_requests)
    _register_exception_handlers(app)
    app.include_router(router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Basic health endpoint."""
        return {"status": "ok"}

    return app


# ---------------------------------------------------------------------------
# Request logging
# ---------------------------------------------------------------------------


def format_request_line(method: str, path: str, status_code: int, duration_ms: float) -> str:
    """Return ``"GET /api/listings 200 in 3ms"``, cut to :data:`_MAX_LOG_LINE`."""
    line = f"{method} {path} {status_code} in {duration_ms:.0f}ms"
    if len(line) > _MAX_LOG_LINE:
        line = line[: _MAX_LOG_LINE - 1] + "…"
    return line


async def _log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag the request with an id and log one line per ``/api`` request."""
    request_id = uuid.uuid4().hex[:8]
    token = REQUEST_ID_CTX.set(request_id)
    start = time.perf_counter()
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        if request.url.path.startswith("/api"):
            elapsed = (time.perf_counter() - start) * 1000
            logger.info(
                format_request_line(request.method, request.url.path, status_code, elapsed)
            )
        REQUEST_ID_CTX.reset(token)


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


def _field_errors(errors: Any) -> list[dict[str, Any]]:
    """Reduce pydantic error dicts to JSON-safe ``loc`` / ``msg`` / ``type``."""
    return [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in errors
    ]


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _request_invalid(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Invalid request data", "errors": _field_errors(exc.errors())},
        )

    @app.exception_handler(InputValidationError)
    async def _input_invalid(_: Request, exc: InputValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": str(exc), "errors": _field_errors(exc.errors)},
        )

    @app.exception_handler(NotFoundError)
    async def _not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": str(exc)})

    @app.exception_handler(DuplicateUsernameError)
    async def _conflict(_: Request, exc: DuplicateUsernameError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"message": str(exc)})

    @app.exception_handler(StoreClosedError)
    async def _closed(_: Request, exc: StoreClosedError) -> JSONResponse:
        logger.warning("Request rejected: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"message": "Service Unavailable"},
        )

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal Server Error"},
        )
