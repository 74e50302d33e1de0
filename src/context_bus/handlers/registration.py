"""
Handler Registration records and handler reference resolution.

A handler is anything callable as ``handler(event) -> result``. Start-time
handler lists may name handlers indirectly, as a ``(module, function)`` pair or
a ``"module:function"`` string; those references are resolved into a
``FunctionReference`` when the registry starts, so dispatch never performs a
dynamic lookup.
"""

import importlib
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Protocol, Tuple, Union, runtime_checkable

from context_bus.events.domain_event import DomainEvent
from context_bus.exceptions import HandlerResolutionError

DEFAULT_PRIORITY = 100


@runtime_checkable
class Handler(Protocol):
    """Capability invoked with one domain event."""

    def __call__(self, event: DomainEvent) -> Any:
        ...


HandlerRef = Union[Callable[[DomainEvent], Any], Tuple[str, str], str]


@dataclass(frozen=True)
class FunctionReference:
    """Invokable adapter around a named module-level function."""

    module: str
    function: str
    target: Callable[[DomainEvent], Any] = field(compare=False, repr=False)

    @classmethod
    def resolve(cls, module: str, function: str) -> 'FunctionReference':
        try:
            imported = importlib.import_module(module)
        except ImportError as e:
            raise HandlerResolutionError((module, function), f"module '{module}' not importable", e)

        target = getattr(imported, function, None)
        if target is None or not callable(target):
            raise HandlerResolutionError((module, function), f"'{function}' is not a callable in '{module}'")

        return cls(module=module, function=function, target=target)

    @property
    def __name__(self) -> str:
        return f"{self.module}.{self.function}"

    def __call__(self, event: DomainEvent) -> Any:
        return self.target(event)


def resolve_handler(reference: HandlerRef) -> Handler:
    """
    Turn a handler reference into something callable.

    Args:
        reference: A callable, a (module, function) pair, or a "module:function" string

    Returns:
        Callable handler

    Raises:
        HandlerResolutionError: If the reference cannot be resolved
    """
    if isinstance(reference, str):
        module, sep, function = reference.partition(':')
        if not sep or not module or not function:
            raise HandlerResolutionError(reference, "expected 'module:function'")
        return FunctionReference.resolve(module, function)

    if isinstance(reference, tuple):
        if len(reference) != 2 or not all(isinstance(part, str) for part in reference):
            raise HandlerResolutionError(reference, 'expected a (module, function) pair')
        return FunctionReference.resolve(*reference)

    if callable(reference):
        return reference

    raise HandlerResolutionError(reference, 'not callable')


def handler_name(handler: Any) -> str:
    """Readable handler name for logs."""
    name = getattr(handler, '__qualname__', None) or getattr(handler, '__name__', None)
    if isinstance(name, str):
        return name
    return type(handler).__name__


def read_priority(options: Optional[Mapping[str, Any]], default: int = DEFAULT_PRIORITY) -> int:
    """Extract the priority option, falling back to the default."""
    if not options or options.get('priority') is None:
        return default
    priority = options['priority']
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise ValueError(f"priority must be an integer, got {priority!r}")
    return priority


@dataclass(frozen=True)
class HandlerRegistration:
    """One subscription of a handler to an event type."""

    event_type: str
    handler: Handler = field(compare=False)
    priority: int = DEFAULT_PRIORITY
    sequence: int = 0
    name: str = ''

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.priority, self.sequence)
