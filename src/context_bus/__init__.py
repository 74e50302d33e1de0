"""
Context Bus - in-process event dispatch for bounded contexts.

Each bounded context owns a handler registry. Business operations dispatch
domain events to it after their own state change is durable; registered
handlers run synchronously in the caller's thread, ordered by priority, with
every failure captured rather than raised. Two standard handlers build on
this:

- IntegrationEventPromoter: publishes a cross-context integration event
- UINotifier: broadcasts the event for live UI refresh
"""

__version__ = "1.0.0"

from context_bus.bus import BusSupervisor, ContextBus
from context_bus.events import Criticality, DomainEvent, IntegrationEvent
from context_bus.handlers import (
    DEFAULT_PRIORITY,
    OK,
    DispatchResult,
    HandlerCrashed,
    HandlerFailure,
    HandlerRegistry,
    UnexpectedReturn,
    dispatch,
    failure,
)
from context_bus.reactions import IntegrationEventPromoter, PromotionPolicy, UINotifier

__all__ = [
    "__version__",
    "BusSupervisor",
    "ContextBus",
    "Criticality",
    "DomainEvent",
    "IntegrationEvent",
    "DEFAULT_PRIORITY",
    "OK",
    "DispatchResult",
    "HandlerCrashed",
    "HandlerFailure",
    "HandlerRegistry",
    "UnexpectedReturn",
    "dispatch",
    "failure",
    "IntegrationEventPromoter",
    "PromotionPolicy",
    "UINotifier",
]
