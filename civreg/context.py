"""Explicit actor context passed into every registry mutation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ActorContext:
    """Who is performing a mutation and which barangay they are assigned to."""

    user_id: str | None = None
    jurisdiction: str | None = None


__all__ = ["ActorContext"]
