"""Request-scoped dependencies shared by the registry routers."""

from __future__ import annotations

from fastapi import Header

from app.services.registry import RegistryService
from civreg.context import ActorContext

# -----------------------------------------------------------------------------
# Registry service injection
# -----------------------------------------------------------------------------
registry_service: RegistryService | None = None


def configure_registry(service: RegistryService) -> RegistryService:
    """Register the service instance used by every router.

    Tests call this with a service bound to a throwaway database.
    """

    global registry_service
    registry_service = service
    return service


def clear_registry() -> None:
    global registry_service
    registry_service = None


def get_registry() -> RegistryService:
    global registry_service
    if registry_service is None:
        registry_service = RegistryService()
    return registry_service


def get_actor(
    x_actor_id: str | None = Header(default=None, max_length=64),
    x_jurisdiction: str | None = Header(default=None, max_length=9),
) -> ActorContext:
    """Actor taken from the ``X-Actor-Id`` and ``X-Jurisdiction`` headers."""

    return ActorContext(
        user_id=(x_actor_id or "").strip() or None,
        jurisdiction=(x_jurisdiction or "").strip() or None,
    )


__all__ = ["clear_registry", "configure_registry", "get_actor", "get_registry"]
