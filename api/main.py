"""
api/main.py -- FastAPI application entry point for the account service.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- CORS headers for allowed browser origins; credentials
                              are allowed because the refresh token is a cookie

Lifespan builds every component from one Settings instance and hangs the
AccountService on app.state, and closes the store on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.users import router as users_router
from auth.otp import OtpGenerator
from auth.service import AccountService
from auth.store import UserStore
from auth.tokens import PasswordHasher, TokenIssuer
from core.config import get_settings
from core.errors import AccountError
from mail.sender import EmailSender

VERSION = "1.0.0"

settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("accounts.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def build_account_service(store: UserStore, mailer: EmailSender | None = None) -> AccountService:
    """Wire an AccountService from the module Settings.

    Configuration is handed to each component here, once; none of them read the
    environment themselves. Tests call this with an in-memory store and a
    recording mailer.
    """
    return AccountService(
        store=store,
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        tokens=TokenIssuer(settings),
        otp=OtpGenerator(expire_seconds=settings.otp_expire_seconds),
        mailer=mailer or EmailSender(settings),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the user store on startup; dispose of its engine on shutdown."""
    logger.info("Account service starting up")
    store = UserStore(db_url=settings.database_url)
    app.state.accounts = build_account_service(store)
    logger.info("User store initialized (%d users)", store.count_users())

    yield

    store.close()
    logger.info("Account service shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Account Service API",
    description="User registration with email OTP verification, sign-in, profiles and admin user management.",
    version=VERSION,
    lifespan=lifespan,
)
app.state.settings = settings

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(users_router, prefix=settings.api_prefix, tags=["User"])
app.include_router(admin_router, prefix=settings.api_prefix, tags=["Admin"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(
            exclude_none=True
        ),
    )


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    """Render a domain error raised anywhere below the routes.

    Internal errors keep their traceback in the log; the client only sees the
    error's own message.
    """
    if exc.status_code >= 500:
        logger.error("%s on %s %s", exc.code, request.method, request.url.path, exc_info=exc)
    return _error_response(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies (wrong JSON types, unparseable JSON) are a 400 like any other bad input."""
    return _error_response(400, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (404 for unknown paths, 405) in the same envelope."""
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness and whether the user store answers."""
    try:
        request.app.state.accounts.store.count_users()
        database = "ok"
    except Exception:
        logger.exception("Health check could not reach the user store")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
