"""
Topic naming conventions shared with remote subscribers and UI layers.

- Integration events: ``integration:{source_context}:{event_type}``
- UI notifications:   ``{aggregate_type}:{event_type}``
"""

from enum import Enum
from typing import Union

from context_bus.events.domain_event import DomainEvent, identifier_value

INTEGRATION_TOPIC_PREFIX = 'integration'


def integration_topic(source_context: Union[str, Enum], event_type: Union[str, Enum]) -> str:
    """Build the topic an integration event is published on."""
    return f"{INTEGRATION_TOPIC_PREFIX}:{identifier_value(source_context)}:{identifier_value(event_type)}"


def ui_topic(aggregate_type: Union[str, Enum], event_type: Union[str, Enum]) -> str:
    """Build the UI refresh topic for an aggregate type and event type."""
    return f"{identifier_value(aggregate_type)}:{identifier_value(event_type)}"


def ui_topic_for(event: DomainEvent) -> str:
    """Derive the UI refresh topic from the event's own fields."""
    return ui_topic(event.aggregate_type, event.event_type)
