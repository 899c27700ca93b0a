"""
ContactBook Backend - FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, error handling
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn contactbook.main:app) and by the tests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware Chain:                                           │
    │  ┌────────┐ ┌──────────┐ ┌──────┐ ┌────────────┐ ┌─────────┐ │
    │  │ Req ID │→│ Sec Hdrs │→│ CORS │→│ Rate Limit │→│ Logging │ │
    │  └────────┘ └──────────┘ └──────┘ └────────────┘ └─────────┘ │
    │                                                              │
    │  Routes (under API_PREFIX):                                  │
    │  ┌──────────────────┐ ┌──────────────────────┐ ┌──────────┐  │
    │  │ /auth/register   │ │ /contacts            │ │ /health  │  │
    │  │ /auth/login, /me │ │ /contacts/{id}       │ │ (root)   │  │
    │  └──────────────────┘ └──────────────────────┘ └──────────┘  │
    │                                                              │
    │  Exception Handlers:                                         │
    │  ┌────────────────────────────────────────────────────────┐  │
    │  │ ContactBookError→kind status │ RequestValidation→400   │  │
    │  │ HTTPException→404/405        │ Exception→500           │  │
    │  └────────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────────┘

Error body (every failure, every status):
    {"error": {"code": "...", "message": "...", "details": ..., "requestId": "..."}}
    ``details`` is omitted when there is nothing to add.

Lifecycle:
    Startup:   logging → configuration check → ready
    Shutdown:  dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contactbook import __version__
from contactbook.config import settings
from contactbook.database import dispose_engine
from contactbook.exceptions import (
    GENERIC_SERVER_MESSAGE,
    ContactBookError,
    RateLimitExceededError,
    ValidationError,
)
from contactbook.middleware.logging import RequestLoggingMiddleware
from contactbook.middleware.rate_limit import RateLimitMiddleware, RateLimitStore
from contactbook.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, get_request_id
from contactbook.middleware.security_headers import SecurityHeadersMiddleware
from contactbook.redaction import redact
from contactbook.routes import auth, contacts, health
from contactbook.validation import format_validation_errors

logger = logging.getLogger(__name__)
error_logger = logging.getLogger("contactbook.errors")

HTTP_ERROR_CODES = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (the container runtime collects it)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("ContactBook Backend %s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving so health checks can report; the log tells operators why
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("ContactBook Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build the standard error envelope."""
    body: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    body["requestId"] = get_request_id(request)
    return JSONResponse(status_code=status_code, content={"error": body}, headers=headers)


def log_error(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    exc: Optional[BaseException] = None,
) -> None:
    """
    Log a failed request with its redacted payload.

    5xx → ERROR with stack trace; 4xx → WARNING without one.
    """
    record = {
        "requestId": get_request_id(request),
        "status": status_code,
        "code": code,
        "message": message,
        "details": details,
        "method": request.method,
        "path": request.url.path,
        "query": getattr(request.state, "log_query", None) or redact(dict(request.query_params)),
        "body": getattr(request.state, "log_body", None),
        "userId": getattr(request.state, "user_id", None),
    }
    if status_code >= 500:
        error_logger.error("ERROR: %s", record, exc_info=exc)
    else:
        error_logger.warning("ERROR: %s", record)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every failure to the error envelope.

    Handler hierarchy:
        ContactBookError        → status from its ErrorKind (429 adds Retry-After)
        RequestValidationError  → 400 VALIDATION_ERROR with one entry per violation
        HTTPException           → 404 NOT_FOUND / 405 METHOD_NOT_ALLOWED / HTTP_ERROR
        Exception (fallback)    → 500 INTERNAL_SERVER_ERROR

    5xx responses never carry internal details; the client sees a generic
    message and the request ID, the log gets the rest.
    """

    @app.exception_handler(ContactBookError)
    async def handle_app_error(request: Request, exc: ContactBookError):
        status_code = exc.status_code
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}

        if status_code >= 500:
            log_error(request, status_code, exc.code, exc.message, exc.context, exc=exc)
            return error_response(request, status_code, exc.code, GENERIC_SERVER_MESSAGE)

        log_error(request, status_code, exc.code, exc.message, exc.details)
        return error_response(
            request, status_code, exc.code, exc.message, exc.details, headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = format_validation_errors(exc.errors())
        error = ValidationError(details=details)
        log_error(request, error.status_code, error.code, error.message, details)
        return error_response(request, error.status_code, error.code, error.message, details)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
        else:
            message = str(exc.detail)
        log_error(request, exc.status_code, code, message)
        return error_response(
            request, exc.status_code, code, message, headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for unexpected errors.

        Runs outside the middleware stack, so the request ID header is set
        here rather than by RequestIDMiddleware.
        """
        log_error(request, 500, "INTERNAL_SERVER_ERROR", str(exc), exc=exc)
        response = error_response(request, 500, "INTERNAL_SERVER_ERROR", GENERIC_SERVER_MESSAGE)
        rid = get_request_id(request)
        if rid:
            response.headers[REQUEST_ID_HEADER] = rid
        return response


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(rate_limit_store: Optional[RateLimitStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        rate_limit_store: Counter backend for the rate limiter. Defaults to
            a fresh in-memory fixed window sized from settings.
    """
    app = FastAPI(
        title="ContactBook API",
        description="Contacts management API: account auth plus per-user contact CRUD.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Execution order is the REVERSE of registration. Registering
    # Logging → RateLimit → CORS → SecurityHeaders → RequestID
    # runs RequestID → SecurityHeaders → CORS → RateLimit → Logging.

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(RateLimitMiddleware, store=rate_limit_store)

    cors_options: Dict[str, Any] = {
        "allow_credentials": True,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
        "expose_headers": [REQUEST_ID_HEADER, "Retry-After"],
    }
    if settings.is_development:
        # Any origin is echoed back; credentials rule out a literal "*"
        cors_options["allow_origin_regex"] = ".*"
    else:
        cors_options["allow_origins"] = settings.cors_origins_list
    app.add_middleware(CORSMiddleware, **cors_options)

    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router, prefix=settings.api_prefix)
    app.include_router(contacts.router, prefix=settings.api_prefix)
    app.include_router(health.router)

    return app


app = create_app()
