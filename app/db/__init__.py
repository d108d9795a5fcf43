"""Database primitives for the civil registry models."""

from __future__ import annotations

from .base import Base, NAMING
from . import models as models

__all__ = ["Base", "models", "NAMING"]
