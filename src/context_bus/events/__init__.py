"""
Event Schemas for the context event bus.

Domain events stay inside one bounded context; integration events are the
translated, primitive-only form that other contexts may consume.
"""

from .domain_event import (
    Criticality,
    DomainEvent,
    EventMetadata,
)

from .integration_event import (
    IntegrationEvent,
    IntegrationEventMetadata,
)

from .topics import (
    integration_topic,
    ui_topic,
    ui_topic_for,
)

__all__ = [
    # Domain events
    'Criticality',
    'DomainEvent',
    'EventMetadata',

    # Integration events
    'IntegrationEvent',
    'IntegrationEventMetadata',

    # Topics
    'integration_topic',
    'ui_topic',
    'ui_topic_for',
]
