"""
Service layer used by the HTTP API.
"""

from .chat_service import ChatService

__all__ = ["ChatService"]
