"""
Per-context event buses.

A ContextBus binds one HandlerRegistry to its bounded context and exposes the
subscribe/dispatch surface a business operation uses. A BusSupervisor is the
explicitly constructed directory of buses an application builds at start-up
and injects where it is needed; tests build their own isolated supervisors.

Dynamic subscriptions live only as long as the registry instance. Restarting a
context rebuilds its registry from the start-time handler list.
"""

import threading
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from context_bus.config import get_default_priority
from context_bus.events.domain_event import DomainEvent, identifier_value
from context_bus.exceptions import ContextAlreadyStartedError, ContextNotStartedError
from context_bus.handlers.dispatcher import dispatch
from context_bus.handlers.registration import HandlerRegistration
from context_bus.handlers.registry import HandlerRegistry, InitialHandler
from context_bus.handlers.results import DispatchResult
from context_bus.observability import flush_metrics as emit_metrics, logger


class ContextBus:
    """Event bus of a single bounded context."""

    def __init__(self, registry: HandlerRegistry):
        self.registry = registry

    @classmethod
    def start(cls, context: Union[str, Enum], handlers: Iterable[InitialHandler] = (), **kwargs: Any) -> 'ContextBus':
        return cls(HandlerRegistry.start(context, handlers, **kwargs))

    @property
    def context(self) -> str:
        return self.registry.context

    def subscribe(
        self,
        event_type: Union[str, Enum],
        handler: Callable[[DomainEvent], Any],
        priority: Optional[int] = None,
    ) -> HandlerRegistration:
        return self.registry.subscribe(event_type, handler, priority)

    def handler(self, event_type: Union[str, Enum], priority: Optional[int] = None) -> Callable:
        """
        Decorator subscribing a function to an event type.

        Example:
            @bus.handler('user_registered', priority=10)
            def send_welcome(event):
                return OK
        """
        def decorator(func: Callable[[DomainEvent], Any]) -> Callable[[DomainEvent], Any]:
            self.subscribe(event_type, func, priority)
            return func

        return decorator

    def get_handlers(self, event_type: Union[str, Enum]) -> Tuple[HandlerRegistration, ...]:
        return self.registry.get_handlers(event_type)

    def dispatch(self, event: DomainEvent) -> DispatchResult:
        return dispatch(self.registry, event)


class BusSupervisor:
    """Directory of one ContextBus per bounded context."""

    def __init__(self, default_priority: Optional[int] = None):
        """
        Create an empty supervisor.

        Args:
            default_priority: Priority for registrations that omit one, read from
                DEFAULT_HANDLER_PRIORITY when not given
        """
        self.default_priority = get_default_priority() if default_priority is None else default_priority
        self._lock = threading.Lock()
        self._buses: Dict[str, ContextBus] = {}

    def start(self, context: Union[str, Enum], handlers: Iterable[InitialHandler] = ()) -> ContextBus:
        """
        Start the bus of a context with its start-time handlers.

        Raises:
            ContextAlreadyStartedError: If the context already has a bus
            HandlerResolutionError: If a handler reference cannot be resolved
        """
        name = str(identifier_value(context))
        with self._lock:
            if name in self._buses:
                raise ContextAlreadyStartedError(name)
            bus = ContextBus.start(name, handlers, default_priority=self.default_priority)
            self._buses[name] = bus
        return bus

    def bus(self, context: Union[str, Enum]) -> ContextBus:
        name = str(identifier_value(context))
        with self._lock:
            bus = self._buses.get(name)
        if bus is None:
            raise ContextNotStartedError(name)
        return bus

    def contexts(self) -> List[str]:
        with self._lock:
            return list(self._buses.keys())

    def subscribe(
        self,
        context: Union[str, Enum],
        event_type: Union[str, Enum],
        handler: Callable[[DomainEvent], Any],
        priority: Optional[int] = None,
    ) -> HandlerRegistration:
        return self.bus(context).subscribe(event_type, handler, priority)

    def get_handlers(self, context: Union[str, Enum], event_type: Union[str, Enum]) -> Tuple[HandlerRegistration, ...]:
        return self.bus(context).get_handlers(event_type)

    def dispatch(self, context: Union[str, Enum], event: DomainEvent) -> DispatchResult:
        return self.bus(context).dispatch(event)

    def restart(self, context: Union[str, Enum]) -> ContextBus:
        """Replace a context's registry with a fresh one built from its start-time handlers."""
        name = str(identifier_value(context))
        with self._lock:
            current = self._buses.get(name)
            if current is None:
                raise ContextNotStartedError(name)
            bus = ContextBus.start(name, current.registry.initial_handlers, default_priority=self.default_priority)
            self._buses[name] = bus

        logger.info(
            "Context bus restarted, dynamic subscriptions dropped",
            extra={"context": name, "dropped": current.registry.handler_count() - bus.registry.handler_count()}
        )
        return bus

    def stop(self, context: Union[str, Enum]) -> None:
        name = str(identifier_value(context))
        with self._lock:
            if self._buses.pop(name, None) is None:
                raise ContextNotStartedError(name)

    def flush_metrics(self) -> None:
        """Emit the dispatch and publish metrics recorded since the last flush."""
        emit_metrics()
