"""Error taxonomy raised by the registry engine."""

from __future__ import annotations

from typing import Any


class RegistryError(RuntimeError):
    """Base error carrying a machine code, the offending field and an HTTP status."""

    code = "REGISTRY_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
        self.field = field
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": str(self),
            "field": self.field,
            "details": self.details or None,
        }


class ValidationError(RegistryError):
    """Malformed input, rejected before anything is written."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(RegistryError):
    """A referenced catalog code, household or resident does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class ConflictError(RegistryError):
    """Concurrent writers collided and the bounded retries were exhausted."""

    code = "CONFLICT"
    status_code = 409


class ConsistencyError(RegistryError):
    """A recomputation would produce an impossible state; the mutation is aborted."""

    code = "CONSISTENCY_ERROR"
    status_code = 500


__all__ = [
    "ConflictError",
    "ConsistencyError",
    "NotFoundError",
    "RegistryError",
    "ValidationError",
]
