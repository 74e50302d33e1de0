"""
Handler registry and dispatcher.

Each bounded context owns one HandlerRegistry; ``dispatch`` executes the
registered handlers for an event in the caller's thread and aggregates their
outcomes into a DispatchResult.
"""

from .results import (
    OK,
    DispatchResult,
    HandlerCrashed,
    HandlerFailure,
    UnexpectedReturn,
    failure,
    is_success,
)

from .registration import (
    DEFAULT_PRIORITY,
    FunctionReference,
    Handler,
    HandlerRegistration,
    resolve_handler,
)

from .registry import HandlerRegistry

from .dispatcher import dispatch

__all__ = [
    # Results
    'OK',
    'DispatchResult',
    'HandlerCrashed',
    'HandlerFailure',
    'UnexpectedReturn',
    'failure',
    'is_success',

    # Registration
    'DEFAULT_PRIORITY',
    'FunctionReference',
    'Handler',
    'HandlerRegistration',
    'resolve_handler',

    # Registry and dispatch
    'HandlerRegistry',
    'dispatch',
]
