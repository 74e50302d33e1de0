"""
UI Notifier.

A notifier broadcasts the raw domain event on ``{aggregate_type}:{event_type}``
so live views can refresh. The business operation has already committed when
it runs, so a failed publish only means a missed refresh: it is logged as a
warning and the handler always returns OK.
"""

from typing import Any, List, Optional

from aws_lambda_powertools.metrics import MetricUnit

from context_bus.broadcast.channel import BroadcastChannel, publish_safely
from context_bus.events.domain_event import DomainEvent
from context_bus.events.topics import ui_topic_for
from context_bus.handlers.results import OK
from context_bus.observability import logger, metrics


class UINotifier:
    """Handler that forwards domain events to UI refresh topics."""

    def __init__(self, channel: BroadcastChannel, name: Optional[str] = None):
        self.channel = channel
        self._name = name or type(self).__name__

    @property
    def __name__(self) -> str:
        return self._name

    def topics_for(self, event: DomainEvent) -> List[str]:
        """Topics the event is published on; subclasses may fan out further."""
        return [ui_topic_for(event)]

    def __call__(self, event: DomainEvent) -> Any:
        return self.notify(event)

    def notify(self, event: DomainEvent) -> Any:
        try:
            topics = self.topics_for(event)
        except Exception as e:
            logger.warning(
                f"Cannot derive UI topics for {event.event_type}: {e}",
                extra={"event_id": event.event_id}
            )
            metrics.add_metric(name="UINotificationFailed", unit=MetricUnit.Count, value=1)
            return OK

        for topic in topics:
            result = publish_safely(self.channel, topic, event)
            if not result.success:
                logger.warning(
                    f"UI notification for {event.event_type} not delivered on {topic}",
                    extra={
                        "event_id": event.event_id,
                        "topic": topic,
                        "error": result.error,
                        "reason": str(result.reason),
                    }
                )
                metrics.add_metric(name="UINotificationFailed", unit=MetricUnit.Count, value=1)

        return OK
