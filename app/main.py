"""FastAPI application exposing the civil registry services."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from app.db.session import build_engine, make_session_factory
from app.observability import configure_observability
from app.routers import (
    audit_router,
    configure_registry,
    geo_router,
    health_router,
    households_router,
    residents_router,
    search_router,
)
from app.routers import deps
from app.schemas.errors import ApiError
from app.services.registry import RegistryService
from civreg import __version__
from civreg.config import Settings, load_settings
from civreg.errors import RegistryError

LOGGER = logging.getLogger(__name__)

_REQUEST_LOCATIONS = {"body", "query", "path", "header"}


def _offending_field(errors: list[dict[str, Any]]) -> str | None:
    if not errors:
        return None
    parts = [str(part) for part in errors[0].get("loc", ()) if part not in _REQUEST_LOCATIONS]
    return ".".join(parts) or None


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RegistryError)
    async def _registry_error_handler(request: Request, exc: RegistryError):  # type: ignore[override]
        LOGGER.warning(
            "registry.error",
            extra={"code": exc.code, "field": exc.field, "error": str(exc)},
        )
        payload = ApiError(
            code=exc.code, message=str(exc), field=exc.field, details=exc.details or None
        )
        return JSONResponse(status_code=exc.status_code, content=payload.model_dump())

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        errors = jsonable_encoder(exc.errors())
        LOGGER.warning("validation.error", extra={"errors": errors})
        field = _offending_field(errors)
        message = errors[0].get("msg", "Invalid request payload") if errors else "Invalid request payload"
        payload = ApiError(
            code="VALIDATION_ERROR",
            message=message,
            field=field,
            details={"errors": errors},
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload.model_dump())


def create_app(
    settings: Settings | None = None, registry: RegistryService | None = None
) -> FastAPI:
    """Build the API; ``registry`` is bound immediately when given."""

    app = FastAPI(title="Civil Registry API", version=__version__)
    configure_observability(app, settings)
    _install_error_handlers(app)
    if registry is not None:
        configure_registry(registry)

    app.include_router(residents_router)
    app.include_router(households_router)
    app.include_router(audit_router)
    app.include_router(search_router)
    app.include_router(geo_router)
    app.include_router(health_router)

    @app.on_event("startup")
    def _init_singletons() -> None:
        """Load settings and bind the registry to the configured database."""

        app.state.settings = settings or load_settings()
        if deps.registry_service is None:
            engine = build_engine(app.state.settings.database.url, settings=app.state.settings)
            configure_registry(
                RegistryService(make_session_factory(engine), settings=app.state.settings)
            )
        LOGGER.info(
            "app.startup",
            extra={"max_conflict_retries": deps.registry_service.max_conflict_retries},
        )

    @app.middleware("http")
    async def security_headers(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Apply default security headers to every HTTP response."""
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        return response

    return app


app = create_app()


__all__ = ["app", "create_app"]
