"""Structured logging, request context and Prometheus metrics for the registry API.

Each request binds its id, the acting user and the ``X-Jurisdiction`` header
to :data:`REQUEST_CONTEXT`. The handler installed by :func:`configure_logging`
copies those values onto every record emitted while the request is served,
so a ``registry.conflict.retry`` warning from the service layer can be traced
back to the clerk and barangay that caused it.
"""

from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Callable
from uuid import uuid4

from fastapi import FastAPI, Request
from prometheus_client import Counter, Histogram, make_asgi_app
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

from civreg.config import LoggingCfg, Settings

_LOGGER = logging.getLogger("civreg.api")
_HANDLER_NAME = "civreg-structured"

REQUEST_CONTEXT: ContextVar[dict[str, str | None] | None] = ContextVar(
    "civreg_request_context", default=None
)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class JSONLogFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` fields become top-level keys.

    Registry messages are dotted event names (``resident.created``), so the
    message is emitted under ``event``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, default=str)


class RequestContextFilter(logging.Filter):
    """Stamp records with the request id, actor and jurisdiction being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in (REQUEST_CONTEXT.get() or {}).items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def configure_logging(cfg: LoggingCfg | None = None) -> logging.Handler:
    """Install the structured root handler; later calls only adjust the level."""

    cfg = cfg or LoggingCfg()
    root = logging.getLogger()
    root.setLevel(getattr(logging, cfg.level, logging.INFO))
    for existing in root.handlers:
        if existing.get_name() == _HANDLER_NAME:
            return existing

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.addFilter(RequestContextFilter())
    if cfg.json_format:
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    root.addHandler(handler)

    # uvicorn's own handlers would print every line twice.
    for name in ("uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers.clear()
    logging.getLogger("uvicorn").propagate = True
    return handler


REQUEST_COUNT = Counter(
    "civreg_requests_total",
    "HTTP requests handled by the registry API.",
    ("method", "route", "status"),
)
REQUEST_LATENCY = Histogram(
    "civreg_request_latency_seconds",
    "Wall time of registry API requests.",
    ("method", "route"),
)


def _route_template(request: Request) -> str:
    """Matched path template so ``/v1/residents/{resident_id}`` is one series."""

    route = request.scope.get("route")
    template = getattr(route, "path_format", None)
    return template or request.url.path


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind the request context, echo ``X-Request-ID`` and record the outcome."""

    async def dispatch(self, request: Request, call_next: Callable):  # type: ignore[override]
        context = {
            "request_id": request.headers.get("x-request-id") or uuid4().hex,
            "actor_id": request.headers.get("x-actor-id"),
            "jurisdiction": request.headers.get("x-jurisdiction"),
        }
        token = REQUEST_CONTEXT.set(context)
        request.state.request_id = context["request_id"]
        start = perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            _LOGGER.exception(
                "request.failed",
                extra={**context, "method": request.method, "route": _route_template(request)},
            )
            raise
        finally:
            route = _route_template(request)
            elapsed = perf_counter() - start
            REQUEST_COUNT.labels(method=request.method, route=route, status=str(status_code)).inc()
            REQUEST_LATENCY.labels(method=request.method, route=route).observe(elapsed)
            _LOGGER.info(
                "request.completed",
                extra={
                    **context,
                    "method": request.method,
                    "route": route,
                    "status_code": status_code,
                    "duration_ms": round(elapsed * 1000.0, 2),
                },
            )
            REQUEST_CONTEXT.reset(token)
        response.headers.setdefault("X-Request-ID", context["request_id"])
        return response


def configure_observability(app: FastAPI, settings: Settings | None = None) -> None:
    """Install logging, middleware and the /metrics endpoint."""

    settings = settings or Settings()
    configure_logging(settings.logging)
    app.add_middleware(GZipMiddleware, minimum_size=settings.api.gzip_min_size)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.api.cors_allow_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)
    app.mount("/metrics", make_asgi_app())


__all__ = [
    "JSONLogFormatter",
    "REQUEST_CONTEXT",
    "RequestContextFilter",
    "RequestContextMiddleware",
    "configure_logging",
    "configure_observability",
]
