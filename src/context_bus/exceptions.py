"""
Exception hierarchy for the context event bus.

These exceptions signal configuration or programming errors (an unresolvable
handler reference, an unknown bounded context). Handler misbehaviour is never
reported through exceptions; the dispatcher turns it into failure values.
"""

from typing import Any, Optional


class ContextBusError(Exception):
    """Base exception for context bus errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class HandlerResolutionError(ContextBusError):
    """Raised when a start-time handler reference cannot be turned into a callable."""

    def __init__(self, reference: Any, reason: str, original_error: Optional[Exception] = None):
        super().__init__(f"Cannot resolve handler {reference!r}: {reason}", original_error)
        self.reference = reference


class ContextNotStartedError(ContextBusError):
    """Raised when a bounded context has no running bus."""

    def __init__(self, context: str):
        super().__init__(f"No event bus started for context '{context}'")
        self.context = context


class ContextAlreadyStartedError(ContextBusError):
    """Raised when a bounded context is started twice."""

    def __init__(self, context: str):
        super().__init__(f"Event bus for context '{context}' is already started")
        self.context = context
