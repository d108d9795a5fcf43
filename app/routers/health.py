"""Liveness and readiness endpoints for the deployment orchestrator."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.db.session import session_scope
from app.routers.deps import get_registry

router = APIRouter(tags=["observability"])


@router.get("/healthz", summary="Lightweight liveness check")
async def healthz() -> dict[str, str]:
    """Return success when the API process is running."""

    return {"status": "ok"}


def _check_database() -> dict[str, Any]:
    try:
        with session_scope(get_registry().session_factory) as session:
            session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return {"status": "error", "error": str(exc)}
    return {"status": "ok"}


@router.get("/readyz", summary="Readiness including the database connection")
def readyz() -> dict[str, Any]:
    """Validate that the registry database accepts queries."""

    checks = {"database": _check_database()}
    failures = {name: result for name, result in checks.items() if result["status"] != "ok"}
    if failures:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "error", "checks": checks},
        )
    return {"status": "ok", "checks": checks}


__all__ = ["router"]
