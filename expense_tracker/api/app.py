"""
HTTP API for Expense Tracker

Builds the FastAPI application: CORS, routers under /api, and the
translation of domain exceptions into JSON error responses.

DESIGN DECISION: Services raise domain exceptions and never build HTTP
responses themselves. Every error leaves the API as `{"error": msg}`
with the status code picked here, in one place.
"""

import logging
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from expense_tracker.api.routers import (
    admin,
    auth,
    budget,
    expenses,
    google_auth,
    health,
    reports,
    settings,
    users,
)
from expense_tracker.audit import configure_logging
from expense_tracker.auth import AuthenticationError, AuthorizationError
from expense_tracker.orchestrator import AppComponents, create_app_components
from expense_tracker.services.image import ImageUploadError, InvalidImageError
from expense_tracker.services.storage import DuplicateError, NotFoundError, StorageError
from expense_tracker.validation import ValidationFailedError


logger = structlog.get_logger("expense_tracker.api")

API_PREFIX = "/api"


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def _validation_failed(request: Request, exc: ValidationFailedError):
    return _error(
        400,
        str(exc),
        issues=[issue.model_dump(mode="json") for issue in exc.issues],
    )


async def _request_invalid(request: Request, exc: RequestValidationError):
    issues = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return _error(400, "Invalid request", issues=issues)


async def _duplicate(request: Request, exc: DuplicateError):
    return _error(400, str(exc))


async def _not_found(request: Request, exc: NotFoundError):
    return _error(404, str(exc))


async def _unauthenticated(request: Request, exc: AuthenticationError):
    return _error(401, str(exc))


async def _forbidden(request: Request, exc: AuthorizationError):
    return _error(403, str(exc))


async def _invalid_image(request: Request, exc: InvalidImageError):
    return _error(400, str(exc))


async def _upload_failed(request: Request, exc: ImageUploadError):
    logger.error("profile_picture_upload_failed", path=request.url.path, error=str(exc))
    return _error(502, "Failed to upload profile picture")


async def _storage_failed(request: Request, exc: StorageError):
    logger.error(
        "storage_error",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    components: AppComponents = request.app.state.components
    await components.audit_logger.log_error(
        error_type=type(exc).__name__,
        error_message=str(exc),
        details={"path": request.url.path, "method": request.method},
    )
    return _error(500, "Internal server error")


async def _http_error(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


def _register_exception_handlers(app: FastAPI) -> None:
    # Starlette resolves handlers along the MRO, so NotFoundError and
    # DuplicateError win over the StorageError catch-all.
    app.add_exception_handler(ValidationFailedError, _validation_failed)
    app.add_exception_handler(RequestValidationError, _request_invalid)
    app.add_exception_handler(DuplicateError, _duplicate)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(AuthenticationError, _unauthenticated)
    app.add_exception_handler(AuthorizationError, _forbidden)
    app.add_exception_handler(InvalidImageError, _invalid_image)
    app.add_exception_handler(ImageUploadError, _upload_failed)
    app.add_exception_handler(StorageError, _storage_failed)
    app.add_exception_handler(StarletteHTTPException, _http_error)


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(components: Optional[AppComponents] = None) -> FastAPI:
    """
    Build the API.

    Args:
        components: Pre-built components (tests pass in-memory ones).
                    Built from settings when omitted.
    """
    components = components or create_app_components()
    app_settings = components.app_settings
    configure_logging(logging.DEBUG if app_settings.debug_mode else logging.INFO)

    app = FastAPI(title="Expense Tracker API")
    app.state.components = components

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(health.router, prefix=API_PREFIX)
    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(google_auth.router, prefix=API_PREFIX)
    app.include_router(expenses.router, prefix=API_PREFIX)
    app.include_router(budget.router, prefix=API_PREFIX)
    app.include_router(settings.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)
    app.include_router(reports.router, prefix=API_PREFIX)
    app.include_router(admin.router, prefix=API_PREFIX)

    logger.info(
        "api_started",
        environment=app_settings.app_environment,
        storage_backend=app_settings.storage_backend,
        google_oauth_enabled=components.google_oauth is not None,
    )
    return app


def run() -> None:
    """Serve the API with uvicorn (the `expense-tracker-api` command)."""
    import uvicorn

    uvicorn.run(
        "expense_tracker.api.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
    )
