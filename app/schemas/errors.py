from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ApiError(BaseModel):
    code: str
    message: str
    field: str | None = None
    details: dict[str, object] | None = None

    model_config = ConfigDict(extra="forbid")


__all__ = ["ApiError"]
