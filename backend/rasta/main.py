# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Build the process-wide components once (settings, DB engine, hasher,
  token codec, TOTP engine, email sender) and park them on ``app.state``.
* Register CORS and request-logging middleware.
* Map domain errors to HTTP statuses with a uniform error body.
* Mount the two feature routers (users, admin).
* Expose a /health endpoint for container liveness checks.

Run with::

    uvicorn --factory rasta.main:create_app --app-dir backend --port 3080
"""

import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from rasta.admin.router import router as admin_router
from rasta.auth.router import router as users_router
from rasta.auth.schemas import ErrorResponse
from rasta.core.config import Settings
from rasta.core.email import build_email_sender
from rasta.core.errors import (
    AccountDisabled,
    Conflict,
    CredentialError,
    Forbidden,
    InternalError,
    InvalidUserId,
    NotFound,
    RastaError,
    Unauthorized,
    ValidationFailed,
)
from rasta.core.logger import configure_logging, logger
from rasta.core.security import build_hasher, build_token_codec
from rasta.core.totp import build_totp_engine
from rasta.database import Base, build_engine, build_session_factory

# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
# First match wins, so subclasses with their own status come before their
# family.  Anything unlisted is a 500.

_STATUS_BY_ERROR = (
    (InvalidUserId, status.HTTP_400_BAD_REQUEST),
    (AccountDisabled, status.HTTP_403_FORBIDDEN),
    (ValidationFailed, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (CredentialError, status.HTTP_401_UNAUTHORIZED),
    (Conflict, status.HTTP_409_CONFLICT),
    (Unauthorized, status.HTTP_401_UNAUTHORIZED),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (InternalError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: RastaError) -> int:
    for error_cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=code,
        content=ErrorResponse(message=message).model_dump(),
        headers=headers,
    )


async def _rasta_error_handler(request: Request, exc: RastaError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, type(exc).__name__)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return _error_response(code, exc.message, headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request body on %s: %d error(s)", request.url.path, len(exc.errors()))
    return _error_response(status.HTTP_400_BAD_REQUEST, ValidationFailed.message)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "%s %s crashed: %s", request.method, request.url.path, type(exc).__name__, exc_info=exc
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.message)


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Request bodies (passwords, codes) are NOT echoed – only the URL and
# metadata are recorded.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None, email_sender=None) -> FastAPI:
    """
    Build a ready-to-serve application.  Tests pass their own *settings*
    and a recording *email_sender*; production reads ``etc/app.conf``.
    """
    if settings is None:
        settings = Settings()
        configure_logging()

    app = FastAPI(title="Rasta", version="1.0.0")

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.hasher = build_hasher(settings)
    app.state.token_codec = build_token_codec(settings)
    app.state.totp_engine = build_totp_engine(settings)
    app.state.email_sender = email_sender or build_email_sender(settings)

    if settings.dev_mode and engine.dialect.name == "sqlite":
        # Dev convenience; real deployments run ``alembic upgrade head``
        Base.metadata.create_all(bind=engine)

    # -- CORS -----------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.add_middleware(_RequestLogMiddleware)

    # -- Errors ---------------------------------------------------------------
    app.add_exception_handler(RastaError, _rasta_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    # -- Routers --------------------------------------------------------------
    app.include_router(users_router)
    app.include_router(admin_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    logger.info("Rasta service configured (dev_mode=%s)", settings.dev_mode)
    return app

