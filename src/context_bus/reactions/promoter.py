"""
Integration Event Promoter.

A promoter is an ordinary handler that turns a domain event into an
integration event and publishes it on ``integration:{source_context}:{event_type}``.
Each event type it promotes declares a criticality:

- ``critical``: a publish failure is returned as a HandlerFailure, so the
  dispatch result tells the originating operation that the cascade broke.
- ``best_effort``: a publish failure is logged and the handler still
  succeeds, since the operation's own state change is already durable.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from aws_lambda_powertools.metrics import MetricUnit
from pydantic import ValidationError

from context_bus.broadcast.channel import BroadcastChannel, publish_safely
from context_bus.events.domain_event import Criticality, DomainEvent, identifier_value
from context_bus.events.integration_event import IntegrationEvent
from context_bus.handlers.registration import DEFAULT_PRIORITY
from context_bus.handlers.results import OK, HandlerFailure, failure
from context_bus.observability import logger, metrics, tracer

Translator = Callable[[DomainEvent, str, Criticality], IntegrationEvent]


@dataclass(frozen=True)
class PromotionPolicy:
    """How one domain event type is promoted."""

    event_type: str
    criticality: Criticality
    translate: Optional[Translator] = None
    entity_type: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', str(identifier_value(self.event_type)))
        object.__setattr__(self, 'criticality', Criticality(self.criticality))

    def build(self, event: DomainEvent, source_context: str) -> IntegrationEvent:
        if self.translate is not None:
            return self.translate(event, source_context, self.criticality)
        return IntegrationEvent.from_domain_event(
            event,
            source_context=source_context,
            criticality=self.criticality,
            entity_type=self.entity_type,
        )


PolicyLike = Union[PromotionPolicy, Tuple[Union[str, Enum], Union[Criticality, str]]]


class IntegrationEventPromoter:
    """Handler that promotes domain events of one context to integration events."""

    def __init__(
        self,
        source_context: Union[str, Enum],
        channel: BroadcastChannel,
        policies: Iterable[PolicyLike],
    ):
        """
        Create a promoter.

        Args:
            source_context: Context that owns the promoted events
            channel: Broadcast channel to publish on
            policies: PromotionPolicy objects or (event_type, criticality) pairs
        """
        self.source_context = str(identifier_value(source_context))
        self.channel = channel
        self.policies: Dict[str, PromotionPolicy] = {}

        for policy in policies:
            if not isinstance(policy, PromotionPolicy):
                event_type, criticality = policy
                policy = PromotionPolicy(event_type=event_type, criticality=criticality)
            self.policies[policy.event_type] = policy

    @property
    def __name__(self) -> str:
        return f"{type(self).__name__}[{self.source_context}]"

    def policy_for(self, event_type: Union[str, Enum]) -> Optional[PromotionPolicy]:
        return self.policies.get(str(identifier_value(event_type)))

    def registrations(self, priority: int = DEFAULT_PRIORITY) -> Iterator[Tuple[str, 'IntegrationEventPromoter', Mapping[str, Any]]]:
        """Yield start-time handler entries subscribing this promoter to every policy's event type."""
        for event_type in self.policies:
            yield (event_type, self, {'priority': priority})

    def __call__(self, event: DomainEvent) -> Any:
        return self.promote(event)

    @tracer.capture_method(capture_response=False)
    def promote(self, event: DomainEvent) -> Any:
        """
        Translate and publish one domain event.

        Returns:
            OK, or a HandlerFailure when the event cannot be translated or a
            critical publish failed
        """
        policy = self.policy_for(event.event_type)
        if policy is None:
            logger.error(
                f"No promotion policy for {event.event_type} in {self.source_context}",
                extra={"event_id": event.event_id}
            )
            return failure('no_promotion_policy', event.event_type)

        try:
            integration_event = policy.build(event, self.source_context)
        except (ValidationError, ValueError, TypeError) as e:
            logger.error(
                f"Cannot translate {event.event_type} into an integration event: {e}",
                extra={"event_id": event.event_id, "source_context": self.source_context}
            )
            return failure('translation_failed', str(e))

        topic = integration_event.topic
        result = publish_safely(self.channel, topic, integration_event)

        if result.success:
            metrics.add_metric(name="IntegrationEventPublished", unit=MetricUnit.Count, value=1)
            logger.debug(
                f"Published integration event {integration_event.event_type} "
                f"({integration_event.event_id}) to topic {topic}",
                extra={
                    "event_id": integration_event.event_id,
                    "entity_id": integration_event.entity_id,
                    "topic": topic,
                }
            )
            return OK

        metrics.add_metric(name="IntegrationEventPublishFailed", unit=MetricUnit.Count, value=1)
        return self._publish_failed(integration_event, policy, result.error, result.reason)

    def _publish_failed(
        self,
        integration_event: IntegrationEvent,
        policy: PromotionPolicy,
        error: Optional[str],
        reason: Any,
    ) -> Any:
        log_extra = {
            "event_id": integration_event.event_id,
            "entity_id": integration_event.entity_id,
            "topic": integration_event.topic,
            "error": error,
            "reason": str(reason),
        }

        if policy.criticality == Criticality.CRITICAL:
            logger.error(
                f"Failed to publish critical integration event {integration_event.event_type}",
                extra=log_extra
            )
            return HandlerFailure(reason='publish_failed', detail=reason)

        logger.warning(
            f"Dropped best-effort integration event {integration_event.event_type}",
            extra=log_extra
        )
        return OK


def promotions(policies: Mapping[Union[str, Enum], Union[Criticality, str]]) -> List[PromotionPolicy]:
    """Build default-translation policies from an event_type -> criticality mapping."""
    return [PromotionPolicy(event_type=event_type, criticality=criticality) for event_type, criticality in policies.items()]
