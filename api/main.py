"""
api/main.py -- FastAPI application factory for TodoVault.

Run with:  python main.py
           uvicorn api.main:create_app --factory --reload

Middleware stack (outermost to innermost):
  1. log_requests          -- one access-log line per request, rejected ones included
  2. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  3. CORSMiddleware        -- adds CORS headers for allowed browser origins

Configuration is injected, not ambient: create_app() takes a Settings object
(defaulting to get_settings()), and the lifespan builds every shared service
from it exactly once:
  engine         -- the bounded connection pool (core.database)
  user_store     -- credential store
  todo_store     -- owner-scoped task repository
  hasher         -- bcrypt PasswordHasher
  token_service  -- HS256 issuer/verifier holding the signing secret
  auth_gate      -- the single producer of Principal
Nothing else lives on app.state and nothing on it is mutated after startup.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse, ProtectedTestResponse, WelcomeResponse
from api.routes.auth import router as auth_router
from api.routes.todos import router as todos_router
from auth.dependencies import AuthGate, require_principal
from auth.models import Principal
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings, get_settings
from core.database import create_db_engine
from core.errors import AuthenticationError, BadCredentialsError, DependencyError, TodoVaultError
from todos.store import TodoStore

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("todovault.api")


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def attach_services(app: FastAPI, settings: Settings, engine: Engine) -> None:
    """Build every shared service from settings and hang it on app.state.

    Order matters: UserStore creates the users table before TodoStore creates
    todos, whose owner_id references it.
    """
    app.state.engine = engine
    app.state.user_store = UserStore(engine)
    app.state.todo_store = TodoStore(engine)
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.token_service = TokenService(settings.jwt_secret, ttl_seconds=settings.token_expire_seconds)
    app.state.auth_gate = AuthGate(app.state.token_service)


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


async def todovault_error_handler(request: Request, exc: TodoVaultError) -> JSONResponse:
    """Map each error kind to exactly one status code and a generic message.

    Internal detail (exc.detail, the chained cause) is logged, never returned.
    Every token or header failure collapses to the same public 401 body; the
    distinct internal code only reaches the log.
    """
    code = exc.code
    message = exc.public_message

    if isinstance(exc, DependencyError):
        logger.error(
            "%s on %s %s: %s",
            exc.code,
            request.method,
            request.url.path,
            exc.detail,
            exc_info=exc,
        )
        code = "internal_error"
    elif isinstance(exc, AuthenticationError):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.code)
        if not isinstance(exc, BadCredentialsError):
            code = AuthenticationError.code
            message = AuthenticationError.public_message

    response = _error_response(exc.status_code, code, message)
    if isinstance(exc, AuthenticationError):
        response.headers["WWW-Authenticate"] = "Bearer"
        response.headers["Cache-Control"] = "no-store"
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the body, path, or query fails validation.

    Only field locations and messages are echoed. Pydantic's error dicts also
    carry the raw input, which may be a password.
    """
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}" for err in exc.errors()
    )
    return _error_response(400, "validation_error", "Request validation failed.", problems or None)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for framework-raised HTTP exceptions (404 route, 405)."""
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the TodoVault ASGI app around one immutable Settings object."""
    settings = settings or get_settings()
    logging.getLogger("todovault").setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the engine and services on startup; dispose the pool on shutdown."""
        logger.info("TodoVault API starting up")
        engine = create_db_engine(
            settings.database_url,
            timeout_seconds=settings.db_timeout_seconds,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
        attach_services(app, settings, engine)
        logger.info(
            "Services initialized (dialect=%s, token_ttl=%ss)",
            engine.dialect.name,
            settings.token_expire_seconds,
        )

        yield

        engine.dispose()
        logger.info("TodoVault API shutdown complete")

    app = FastAPI(
        title="TodoVault API",
        description="Multi-tenant task tracking with bearer-token authentication.",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Each add_middleware() wraps the previous stack, so the last one added
    # sees the request first.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        principal = getattr(request.state, "principal", None)
        logger.info(
            "%s %s %d %.1fms %s user=%s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
            principal.user_id if principal else "-",
        )
        return response

    app.add_exception_handler(TodoVaultError, todovault_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(auth_router, tags=["Auth"])
    app.include_router(todos_router, tags=["Todos"])

    # -----------------------------------------------------------------------
    # System endpoints -- defined here (not in a router) so they are always
    # reachable regardless of router registration state.
    # -----------------------------------------------------------------------

    @app.get("/", response_model=WelcomeResponse, tags=["System"])
    def welcome(request: Request) -> WelcomeResponse:
        """Greeting plus a live database connectivity check."""
        connected = request.app.state.user_store.ping()
        return WelcomeResponse(
            message="Welcome to the TodoVault REST API",
            success=True,
            database="connected" if connected else "unavailable",
        )

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health(request: Request) -> HealthResponse:
        """Return liveness, version, and per-component status. No auth required."""
        db_ok = request.app.state.user_store.ping()
        return HealthResponse(
            status="healthy" if db_ok else "degraded",
            version=API_VERSION,
            components={"app": "ok", "database": "ok" if db_ok else "error"},
        )

    @app.get("/protected-test", response_model=ProtectedTestResponse, tags=["System"])
    def protected_test(principal: Principal = Depends(require_principal)) -> ProtectedTestResponse:
        """Echo the authenticated user id -- a quick way to check a token works."""
        return ProtectedTestResponse(message="You have access to a protected route.", user_id=principal.user_id)

    return app
