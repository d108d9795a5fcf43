"""Civil registry engine: household identity, sector classification and aggregates."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _get_version

try:
    __version__ = _get_version("civreg")
except PackageNotFoundError:  # pragma: no cover - metadata may be unavailable in source checkouts
    __version__ = "0.0.0"


from .classification import SectorFlags, classify_resident, compute_age  # noqa: E402
from .context import ActorContext  # noqa: E402
from .errors import (  # noqa: E402
    ConflictError,
    ConsistencyError,
    NotFoundError,
    RegistryError,
    ValidationError,
)
from .identity import HouseholdCode, LeafCode, format_household_code, parse_leaf_code  # noqa: E402
from .income import classify_income  # noqa: E402

__all__ = [
    "__version__",
    "ActorContext",
    "ConflictError",
    "ConsistencyError",
    "HouseholdCode",
    "LeafCode",
    "NotFoundError",
    "RegistryError",
    "SectorFlags",
    "ValidationError",
    "classify_income",
    "classify_resident",
    "compute_age",
    "format_household_code",
    "parse_leaf_code",
]
