"""
Synchronous, priority-ordered dispatch of domain events.

``dispatch`` runs in the caller's thread: it reads a snapshot of the handlers
for the event's type from the registry, orders them by priority (ties keep
registration order) and invokes every one of them. A failing or crashing
handler never stops the handlers after it and never raises out of dispatch;
each problem is captured as a value and returned in the aggregated result.
The dispatcher holds no state of its own.
"""

from typing import Any, List

from aws_lambda_powertools.metrics import MetricUnit

from context_bus.events.domain_event import DomainEvent
from context_bus.handlers.registration import HandlerRegistration
from context_bus.handlers.registry import HandlerRegistry
from context_bus.handlers.results import (
    DispatchResult,
    HandlerCrashed,
    HandlerFailure,
    UnexpectedReturn,
    is_success,
)
from context_bus.observability import logger, metrics, tracer


def ordered(registrations: tuple) -> List[HandlerRegistration]:
    """Sort by priority, equal priorities keep registration order."""
    return sorted(registrations, key=lambda registration: registration.sort_key)


@tracer.capture_method(capture_response=False)
def dispatch(registry: HandlerRegistry, event: DomainEvent) -> DispatchResult:
    """
    Dispatch a domain event to every handler registered for its type.

    Args:
        registry: Registry of the context the event belongs to
        event: Event to dispatch

    Returns:
        DispatchResult, successful when every handler succeeded (or none exist)
    """
    registrations = registry.get_handlers(event.event_type)

    if not registrations:
        logger.debug(
            f"No handlers registered for {event.event_type}",
            extra={"context": registry.context, "event_id": event.event_id}
        )
        return DispatchResult.success()

    failures: List[HandlerFailure] = []
    for registration in ordered(registrations):
        outcome = invoke(registration, event, registry.context)
        if outcome is not None:
            failures.append(outcome)

    metrics.add_metric(name="EventDispatched", unit=MetricUnit.Count, value=1)

    if failures:
        logger.warning(
            f"{len(failures)} of {len(registrations)} handlers failed for {event.event_type}",
            extra={
                "context": registry.context,
                "event_id": event.event_id,
                "event_type": event.event_type,
                "failures": [failure.reason for failure in failures],
            }
        )
        return DispatchResult(errors=tuple(failures), handlers_executed=len(registrations))

    return DispatchResult.success(handlers_executed=len(registrations))


def invoke(registration: HandlerRegistration, event: DomainEvent, context: str) -> Any:
    """Run one handler and return a failure value, or None when it succeeded."""
    try:
        result = registration.handler(event)
    except Exception as e:
        logger.exception(
            f"Handler {registration.name} crashed for {event.event_type}",
            extra={
                "context": context,
                "event_id": event.event_id,
                "event_type": event.event_type,
                "error": str(e),
            }
        )
        metrics.add_metric(name="HandlerCrashed", unit=MetricUnit.Count, value=1)
        return HandlerCrashed(error=e, handler_name=registration.name)

    if is_success(result):
        return None

    metrics.add_metric(name="HandlerFailed", unit=MetricUnit.Count, value=1)

    if isinstance(result, HandlerFailure):
        logger.warning(
            f"Handler {registration.name} failed for {event.event_type}: {result.reason}",
            extra={"context": context, "event_id": event.event_id}
        )
        return result

    logger.warning(
        f"Handler {registration.name} returned unexpected value for {event.event_type}",
        extra={"context": context, "event_id": event.event_id, "value": repr(result)}
    )
    return UnexpectedReturn(value=result, handler_name=registration.name)
