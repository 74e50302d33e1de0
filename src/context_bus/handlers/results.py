"""
Handler outcome vocabulary.

A handler reports success by returning ``OK`` and a business level problem
by returning a ``HandlerFailure``. Anything else, ``None`` included, is a bug
in the handler. The dispatcher wraps crashes and unexpected return values in
the ``HandlerCrashed`` and ``UnexpectedReturn`` failure shapes, so every
problem ends up as a value in ``DispatchResult``.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


class _Ok:
    """Success marker returned by handlers."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'OK'

    def __reduce__(self):
        return (_Ok, ())


OK = _Ok()


@dataclass(frozen=True)
class HandlerFailure:
    """An explicit failure reported by a handler."""

    reason: str
    detail: Any = None


@dataclass(frozen=True)
class HandlerCrashed(HandlerFailure):
    """A handler raised instead of returning a result."""

    reason: str = 'handler_crashed'
    error: Optional[BaseException] = field(default=None, compare=False)
    handler_name: Optional[str] = None

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ''


@dataclass(frozen=True)
class UnexpectedReturn(HandlerFailure):
    """A handler returned something that is neither a success nor a failure."""

    reason: str = 'unexpected_return'
    value: Any = None
    handler_name: Optional[str] = None


def failure(reason: str, detail: Any = None) -> HandlerFailure:
    """Shorthand for building an explicit handler failure."""
    return HandlerFailure(reason=reason, detail=detail)


def is_success(result: Any) -> bool:
    """Check whether a handler return value counts as success."""
    return result is OK


@dataclass(frozen=True)
class DispatchResult:
    """Aggregated outcome of one dispatch call."""

    errors: Tuple[HandlerFailure, ...] = ()
    handlers_executed: int = 0

    @classmethod
    def success(cls, handlers_executed: int = 0) -> 'DispatchResult':
        return cls(errors=(), handlers_executed=handlers_executed)

    @property
    def succeeded(self) -> bool:
        return not self.errors

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    def __bool__(self) -> bool:
        return self.succeeded
