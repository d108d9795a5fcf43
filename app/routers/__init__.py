"""API routers for the civil registry service."""


from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "audit_router",
    "clear_registry",
    "configure_registry",
    "geo_router",
    "health_router",
    "households_router",
    "residents_router",
    "search_router",
]

_LAZY_ATTRS: dict[str, tuple[str, str]] = {
    "audit_router": ("audit", "router"),
    "clear_registry": ("deps", "clear_registry"),
    "configure_registry": ("deps", "configure_registry"),
    "geo_router": ("geo", "router"),
    "health_router": ("health", "router"),
    "households_router": ("households", "router"),
    "residents_router": ("residents", "router"),
    "search_router": ("search", "router"),
}


def __getattr__(name: str) -> Any:  # pragma: no cover - simple import trampoline
    try:
        module_name, attr_name = _LAZY_ATTRS[name]
    except KeyError as exc:
        raise AttributeError(name) from exc

    module = import_module(f".{module_name}", __name__)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:  # pragma: no cover - introspection helper
    return sorted(__all__)
