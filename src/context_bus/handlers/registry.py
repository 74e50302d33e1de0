"""
Handler Registry for one bounded context.

The registry is a directory, never an executor: it stores Handler
Registrations per event type and hands out snapshots of them. All mutation goes
through one lock (single writer). Each event type maps to an immutable tuple
that is replaced, never edited, on subscribe, so a reader always sees either
the list before or after a mutation and never a partial one.
"""

import threading
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from context_bus.events.domain_event import DomainEvent, identifier_value
from context_bus.handlers.registration import (
    DEFAULT_PRIORITY,
    HandlerRef,
    HandlerRegistration,
    handler_name,
    read_priority,
    resolve_handler,
)
from context_bus.observability import logger

InitialHandler = Union[
    Tuple[Union[str, Enum], HandlerRef],
    Tuple[Union[str, Enum], HandlerRef, Optional[Mapping[str, Any]]],
]


class HandlerRegistry:
    """Registry of event handlers for a single bounded context."""

    def __init__(
        self,
        context: str,
        initial_handlers: Iterable[InitialHandler] = (),
        default_priority: int = DEFAULT_PRIORITY,
    ):
        """
        Start a registry for a context.

        Args:
            context: Name of the bounded context that owns this registry
            initial_handlers: (event_type, handler_ref[, options]) entries loaded at start
            default_priority: Priority used when a registration omits one

        Raises:
            HandlerResolutionError: If a start-time handler reference cannot be resolved
        """
        self.context = str(identifier_value(context))
        self.default_priority = default_priority
        self._lock = threading.Lock()
        self._handlers: Dict[str, Tuple[HandlerRegistration, ...]] = {}
        self._sequence = 0
        self._initial_handlers: Tuple[InitialHandler, ...] = tuple(initial_handlers)

        for entry in self._initial_handlers:
            event_type, reference, options = self._unpack(entry)
            self._append(event_type, resolve_handler(reference), read_priority(options, default_priority))

        logger.info(
            "HandlerRegistry started",
            extra={
                "context": self.context,
                "initial_handlers": len(self._initial_handlers),
            }
        )

    @classmethod
    def start(cls, context: str, initial_handlers: Iterable[InitialHandler] = (), **kwargs: Any) -> 'HandlerRegistry':
        return cls(context, initial_handlers, **kwargs)

    @property
    def initial_handlers(self) -> Tuple[InitialHandler, ...]:
        """The start-time handler list this registry was built from."""
        return self._initial_handlers

    def subscribe(
        self,
        event_type: Union[str, Enum],
        handler: Callable[[DomainEvent], Any],
        priority: Optional[int] = None,
    ) -> HandlerRegistration:
        """
        Append a handler for an event type.

        The registration is visible to every later get_handlers call once this
        method returns.

        Args:
            event_type: Event type to react to
            handler: Callable taking one DomainEvent
            priority: Lower runs earlier, defaults to the registry default

        Returns:
            The stored HandlerRegistration
        """
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {handler!r}")

        resolved_priority = read_priority({'priority': priority}, self.default_priority)
        registration = self._append(str(identifier_value(event_type)), handler, resolved_priority)

        logger.debug(
            f"Registered handler {registration.name} for {registration.event_type}",
            extra={
                "context": self.context,
                "event_type": registration.event_type,
                "priority": registration.priority,
            }
        )
        return registration

    def get_handlers(self, event_type: Union[str, Enum]) -> Tuple[HandlerRegistration, ...]:
        """Return a snapshot of the registrations for an event type (empty if none)."""
        key = str(identifier_value(event_type))
        with self._lock:
            return self._handlers.get(key, ())

    def event_types(self) -> List[str]:
        """List event types that have at least one handler."""
        with self._lock:
            return list(self._handlers.keys())

    def handler_count(self) -> int:
        """Total number of registrations across event types."""
        with self._lock:
            return sum(len(registrations) for registrations in self._handlers.values())

    def _append(self, event_type: str, handler: Callable[[DomainEvent], Any], priority: int) -> HandlerRegistration:
        with self._lock:
            self._sequence += 1
            registration = HandlerRegistration(
                event_type=event_type,
                handler=handler,
                priority=priority,
                sequence=self._sequence,
                name=handler_name(handler),
            )
            # publish a new tuple; readers holding the old one are unaffected
            self._handlers[event_type] = self._handlers.get(event_type, ()) + (registration,)
        return registration

    @staticmethod
    def _unpack(entry: Sequence[Any]) -> Tuple[str, HandlerRef, Optional[Mapping[str, Any]]]:
        if len(entry) == 2:
            event_type, reference = entry
            options = None
        elif len(entry) == 3:
            event_type, reference, options = entry
        else:
            raise ValueError(f"handler entry must be (event_type, handler[, options]), got {entry!r}")
        return str(identifier_value(event_type)), reference, options
