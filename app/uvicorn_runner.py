"""Uvicorn launcher for the registry API."""

from __future__ import annotations

import os
from typing import Optional

import uvicorn
from sqlalchemy.engine import make_url

from civreg.config import Settings, load_settings


def _env_positive_int(name: str) -> Optional[int]:
    """Return a positive integer from ``name`` if it is well-formed."""

    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip()
    if not value or value.lower() == "auto":
        return None
    try:
        parsed = int(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def determine_worker_count(settings: Settings | None = None) -> int:
    """Worker count from ``UVICORN_WORKERS``, else one per CPU.

    SQLite serialises writers on a single file, so it gets one worker unless
    the operator overrides it explicitly.
    """

    explicit = _env_positive_int("UVICORN_WORKERS")
    if explicit is not None:
        return explicit
    settings = settings or Settings()
    if make_url(settings.database.url).get_backend_name() == "sqlite":
        return 1
    return max(1, os.cpu_count() or 1)


def main() -> None:
    """Launch the FastAPI app using the persisted settings."""

    settings = load_settings()
    host = os.getenv("UVICORN_HOST", "0.0.0.0")
    port = int(os.getenv("UVICORN_PORT", os.getenv("PORT", "8000")))
    timeout_keep_alive = _env_positive_int("UVICORN_TIMEOUT_KEEP_ALIVE") or 10
    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        workers=determine_worker_count(settings),
        timeout_keep_alive=timeout_keep_alive,
        log_level=settings.logging.level.lower(),
    )


__all__ = ["determine_worker_count", "main"]


if __name__ == "__main__":
    main()
