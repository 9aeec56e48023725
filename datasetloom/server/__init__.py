"""
HTTP server for DatasetLoom.
"""

from .main import create_app
from .service_container import ServiceConfig, ServiceContainer

__all__ = ["create_app", "ServiceConfig", "ServiceContainer"]
