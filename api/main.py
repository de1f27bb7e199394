"""
api/main.py -- FastAPI application entry point for the boilerplate API.

Run with:  uvicorn asgi:app --reload
           python main.py --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan handles startup (static dirs, DB, stores, token cache, purge task)
and shutdown (cancel purge task, dispose engine) symmetrically.

Error mapping: every KnownError raised below the API layer propagates
untouched to the handlers here, which translate its code into an HTTP status
and the shared ErrorResponse envelope.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from acl.store import ACLStore
from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.files import router as files_router
from api.routes.v1.projects import router as projects_router
from api.routes.v1.users import router as users_router
from api.routes.v1.utils import router as utils_router
from auth.store import UserStore
from cache.store import TokenCache
from core.config import get_settings
from core.db import Database
from core.errors import ErrorCode, KnownError
from core.logger import configure_logging
from files.storage import PUBLIC_DIR, ensure_directories
from projects.store import ProjectStore

VERSION = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

configure_logging(_settings.log_level, _settings.log_file)
logger = logging.getLogger("boilerplate.api")

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI, interval: float) -> None:
    """Purge expired token cache entries every `interval` seconds.

    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(interval)
        removed = app.state.token_cache.purge_expired()
        if removed:
            logger.debug("Purged %d expired token cache entries", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. Static directories first -- the /public mount serves from them.
      2. Database, then the stores that share it.
      3. Token cache, then the purge task that references it.
    """
    logger.info("Boilerplate API starting up")
    ensure_directories(_settings.static_files_dir)

    db = Database(_settings.database_url)
    app.state.db = db
    app.state.user_store = UserStore(db)
    app.state.acl = ACLStore(db)
    app.state.project_store = ProjectStore(db)
    logger.info("Database initialized")

    app.state.token_cache = TokenCache(ttl=_settings.token_cache_ttl_seconds)
    app.state.purge_task = asyncio.create_task(_purge_loop(app, _settings.token_cache_purge_seconds))

    yield

    app.state.purge_task.cancel()
    with suppress(asyncio.CancelledError):
        await app.state.purge_task
    db.close()
    logger.info("Boilerplate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Boilerplate API",
    description="User registration, JWT and API-key authentication, resource ACL, and static file upload.",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs/swagger",
    redoc_url="/docs/redoc",
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


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

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])
app.include_router(projects_router, prefix="/api/v1", tags=["Projects"])
app.include_router(files_router, prefix="/api/v1", tags=["Files"])
app.include_router(utils_router, prefix="/api/v1", tags=["Utils"])

# Uploaded files. check_dir=False: the lifespan creates the directory.
app.mount(
    "/public",
    StaticFiles(directory=_settings.static_files_dir / PUBLIC_DIR, check_dir=False),
    name="public",
)

# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.USER_NOT_FOUND: 404,
    ErrorCode.PROJECT_NOT_FOUND: 404,
    ErrorCode.ACL_ENTRY_NOT_FOUND: 404,
    ErrorCode.USER_CREDENTIALS_NOT_VALID: 401,
    ErrorCode.USER_API_TOKEN_NOT_VALID: 401,
    ErrorCode.ACCESS_DENIED: 403,
    ErrorCode.SECRET_TOO_LONG: 422,
}


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(KnownError)
async def known_error_handler(request: Request, exc: KnownError) -> JSONResponse:
    """Map a domain error to its HTTP status. The code string is passed through."""
    return _error(_STATUS_BY_CODE.get(exc.code, 400), exc.code.value, exc.message)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Unique / primary key / foreign key violations become 409.

    The driver message is logged, not returned: it names tables and columns.
    """
    logger.info("Constraint violation on %s %s: %s", request.method, request.url.path, exc.orig)
    return _error(409, "conflict", "The request conflicts with an existing record.")


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Must stay sync: SlowAPIMiddleware calls it without awaiting and returns
    the result as the response.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return _error(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with detail=ErrorDetail(...).model_dump()
    (a dict). When detail is already a structured dict, use it directly as the
    error field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No rate limit applied.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and per-component status."""
    components = {
        "app": "ok",
        "database": "ok" if request.app.state.db.ping() else "unavailable",
    }
    status = "healthy" if all(v == "ok" for v in components.values()) else "degraded"
    return HealthResponse(status=status, version=VERSION, components=components)
