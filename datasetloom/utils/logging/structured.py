"""
Structured logging utilities for event-based logging.

Provides structured event logging plus a human-readable development formatter
that renders the attached event data compactly.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional


class StructuredLogger:
    """
    Structured logger that creates consistent, searchable log events.

    Each record carries a ``structured_data`` dict with the event name, the
    correlation id, any active operation context and the caller's data.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def event(
        self,
        event_name: str,
        data: Optional[Dict[str, Any]] = None,
        level: int = logging.INFO,
    ):
        """
        Log a structured event with optional data.

        Args:
            event_name: Name of the event (e.g., 'chat_created')
            data: Dictionary of structured data to include
            level: Log level (defaults to INFO)
        """
        from .context import get_correlation_id, get_operation_context

        if not self.logger.isEnabledFor(level):
            return

        structured_data = {
            "event": event_name,
            "correlation_id": get_correlation_id(),
        }

        operation_context = get_operation_context()
        if operation_context:
            structured_data.update(operation_context)

        if data:
            structured_data.update(data)

        record = self.logger.makeRecord(
            self.logger.name, level, "(structured)", 0, event_name, (), None
        )
        record.structured_data = structured_data

        self.logger.handle(record)


_global_logger: Optional[StructuredLogger] = None


def get_structured_logger(name: str = "datasetloom") -> StructuredLogger:
    """Get or create the structured logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = StructuredLogger(name)
    return _global_logger


def log_event(
    event_name: str, data: Optional[Dict[str, Any]] = None, level: int = logging.INFO
):
    """
    Convenience function for logging structured events.

    Args:
        event_name: Name of the event
        data: Optional structured data
        level: Log level

    Example::

        log_event("dataset_export_completed", {
            "chat_id": "c1",
            "turns": 12,
        })
    """
    structured_logger = get_structured_logger()
    structured_logger.event(event_name, data, level)


def create_development_formatter() -> logging.Formatter:
    """
    Create a human-readable formatter for development environments.

    Operation events render as a one-line summary with duration; chat and
    export events get a short context suffix; anything else falls back to the
    event name.
    """

    class DevelopmentFormatter(logging.Formatter):
        def format(self, record: logging.LogRecord) -> str:
            timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[
                :-3
            ]

            data: Optional[dict] = getattr(record, "structured_data", None)

            if not data:
                return f"{timestamp} | {record.levelname:5} | {record.getMessage()}"

            event = data.get("event", "")
            operation = data.get("operation", "")

            if event == "operation_started":
                message_content = f"🚀 {operation or 'operation'} started"
            elif event == "operation_completed":
                message_content = self._format_operation_success(data, operation)
            elif event == "operation_failed":
                message_content = self._format_operation_error(data, operation)
            elif event in ["service_ready", "database_initialized", "schema_applied"]:
                message_content = self._format_system_event(data, event)
            else:
                message_content = self._format_generic_event(data, event)

            return f"{timestamp} | {record.levelname:5} | {message_content}"

        def _format_duration(self, duration_ms: int) -> str:
            if duration_ms >= 1000:
                return f"{duration_ms/1000:.1f}s"
            return f"{duration_ms}ms"

        def _format_operation_success(self, data: dict, operation: str) -> str:
            duration_ms = data.get("duration_ms", 0)

            if duration_ms < 50:
                duration_emoji = "⚡"
            elif duration_ms > 2000:
                duration_emoji = "🐌"
            else:
                duration_emoji = "⏱️"

            base_message = f"{duration_emoji} {self._format_duration(duration_ms)} {operation}"

            if "result_length" in data:
                return f"{base_message} ({data['result_length']} items)"
            return base_message

        def _format_operation_error(self, data: dict, operation: str) -> str:
            duration_ms = data.get("duration_ms", 0)
            error_type = data.get("error_type", "Error")
            error_message = data.get("error_message", "")

            duration_part = f" {self._format_duration(duration_ms)}" if duration_ms else ""

            if len(error_message) > 60:
                error_message = error_message[:57] + "..."

            return (
                f"❌{duration_part} {operation} failed ({error_type}: {error_message})"
            )

        def _format_system_event(self, data: dict, event: str) -> str:
            if event == "service_ready":
                services = ", ".join(data.get("services", []))
                return f"✅ services ready ({services})"
            elif event == "database_initialized":
                pool_size = data.get("pool_max_size", "?")
                return f"🗄️ database ready (pool_max={pool_size})"
            return f"⚙️ {event}"

        def _format_generic_event(self, data: dict, event: str) -> str:
            if not event:
                return "📝 log_event"

            context = self._get_business_event_context(data, event)
            return f"📝 {event}: {context}" if context else f"📝 {event}"

        def _get_business_event_context(self, data: dict, event: str) -> str:
            """Get contextual information for chat and export events."""
            if event in ("chat_created", "chat_deleted"):
                return f"chat={data.get('chat_id', 'unknown')}"
            elif event == "chat_visibility_updated":
                return f"chat={data.get('chat_id', 'unknown')} -> {data.get('visibility')}"
            elif event == "chats_paginated":
                direction = data.get("direction", "first")
                return f"{data.get('returned', 0)} chats ({direction}, has_more={data.get('has_more')})"
            elif event == "vote_recorded":
                vote = "up" if data.get("is_upvote") else "down"
                return f"message={data.get('message_id', 'unknown')} {vote}"
            elif event == "archive_finalized":
                return f"{data.get('entries', 0)} entries"
            elif event == "dataset_export_completed":
                return f"{data.get('turns', 0)} turns -> {data.get('filename')}"
            elif event == "archive_cleanup":
                return f"{data.get('error_type', 'Error')}"
            return ""

    return DevelopmentFormatter()
