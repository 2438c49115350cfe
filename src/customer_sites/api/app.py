"""FastAPI application factory.

Request pipeline:
- OPTIONS short-circuits with 204 and CORS headers (no auth)
- everything under /customer-sites is authenticated before routing,
  so unauthenticated requests never touch storage or request bodies
- every response carries permissive CORS headers
- no interactive docs or OpenAPI schema are served
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from customer_sites import __version__
from customer_sites.api.errors import register_exception_handlers
from customer_sites.config import Settings, get_settings
from customer_sites.core.auth import verify_auth
from customer_sites.models.types import failure
from customer_sites.storage import SiteStorage, build_storage

logger = logging.getLogger(__name__)

SITES_PATH = "/customer-sites"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}
PREFLIGHT_MAX_AGE = "86400"

UNAUTHORIZED_MESSAGE = "unauthorized: check the server password or auth parameters"


def get_storage(request: Request) -> SiteStorage:
    """Dependency returning the active storage backend.

    The backend is built on first use and its schema ensured on every
    request (a no-op for document stores).
    """
    storage = request.app.state.storage
    if storage is None:
        storage = build_storage(request.app.state.settings)
        request.app.state.storage = storage
    storage.ensure_schema()
    return storage


def _is_protected(path: str) -> bool:
    return path == SITES_PATH or path.startswith(SITES_PATH + "/")


def create_app(settings: Settings | None = None, storage: SiteStorage | None = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        settings: Optional settings; defaults to the environment.
        storage: Optional storage backend; defaults to the one selected
            by settings, built lazily.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Customer Sites API",
        description="Password-gated registry of customer video sources",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings if settings is not None else get_settings()
    app.state.storage = storage

    register_exception_handlers(app)

    @app.middleware("http")
    async def cors_and_auth(request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return Response(
                status_code=204,
                headers={**CORS_HEADERS, "Access-Control-Max-Age": PREFLIGHT_MAX_AGE},
            )

        if _is_protected(request.url.path):
            current: Settings = request.app.state.settings
            ok = verify_auth(
                request.query_params.get("auth"),
                request.query_params.get("t"),
                current.password_value(),
                max_age_ms=current.auth_max_age_seconds * 1000,
                require_timestamp=current.require_timestamp,
            )
            if not ok:
                return JSONResponse(failure(UNAUTHORIZED_MESSAGE), status_code=401, headers=CORS_HEADERS)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error for {request.method} {request.url.path}")
            response = JSONResponse(failure("internal server error"), status_code=500)

        response.headers.update(CORS_HEADERS)
        return response

    from customer_sites.api.routes import customer_sites

    app.include_router(customer_sites.router)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Default app instance
app = create_app()
