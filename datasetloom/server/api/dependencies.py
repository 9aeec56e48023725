"""
Dependency injection for API routes.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..service_container import ServiceContainer


# Global container instance - set during app startup
_service_container: Optional["ServiceContainer"] = None


def set_service_container(container: Optional["ServiceContainer"]):
    """
    Set the global service container.

    Args:
        container: The initialized ServiceContainer, or None on shutdown
    """
    global _service_container
    _service_container = container


def get_service_container() -> "ServiceContainer":
    """
    Get the current service container.

    Raises:
        RuntimeError: If the container has not been initialized
    """
    if _service_container is None:
        raise RuntimeError("Service container not initialized")
    return _service_container
