"""
Integration Event schema.

Integration events are the public contract between bounded contexts. They are
built from a domain event's public fields only and carry a payload restricted
to primitive values, so subscribers in other contexts never depend on a
context's internal representations.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Mapping, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from context_bus.events.domain_event import Criticality, DomainEvent, identifier_value
from context_bus.events.topics import integration_topic

PRIMITIVE_TYPES = (str, int, float, bool, type(None))


def is_primitive(value: Any) -> bool:
    """Check that a value is a primitive or a list/str-keyed dict of primitives."""
    if isinstance(value, PRIMITIVE_TYPES):
        return True
    if isinstance(value, (list, tuple)):
        return all(is_primitive(item) for item in value)
    if isinstance(value, dict):
        return all(isinstance(key, str) and is_primitive(item) for key, item in value.items())
    return False


def to_primitive(value: Any) -> Any:
    """Convert common rich values (datetimes, UUIDs, enums) into primitives."""
    if isinstance(value, Enum):
        return to_primitive(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_primitive(item) for item in value]
    if isinstance(value, Mapping):
        return {str(identifier_value(key)): to_primitive(item) for key, item in value.items()}
    return value


class IntegrationEventMetadata(BaseModel):
    """Correlation data carried across context boundaries."""

    model_config = ConfigDict(frozen=True)

    correlation_id: Optional[str] = None
    causation_id: Optional[str] = None


class IntegrationEvent(BaseModel):
    """A cross-context-safe translation of a domain event."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: Annotated[str, Field(min_length=1)]
    source_context: Annotated[str, Field(
        min_length=1,
        description='Bounded context that emitted the event',
        examples=['accounts']
    )]
    entity_type: Annotated[str, Field(min_length=1, description='Public entity name')]
    entity_id: Annotated[Union[str, int], Field(description='Public entity identifier')]
    payload: Dict[str, Any] = Field(default_factory=dict)
    criticality: Criticality = Criticality.BEST_EFFORT
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: IntegrationEventMetadata = Field(default_factory=IntegrationEventMetadata)
    version: Annotated[int, Field(ge=1)] = 1

    @field_validator('event_type', 'source_context', 'entity_type', mode='before')
    @classmethod
    def normalize_identifier(cls, v: Any) -> Any:
        return identifier_value(v)

    @field_validator('payload')
    @classmethod
    def validate_primitive_payload(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Reject payload values that are not stable primitives."""
        for key, value in v.items():
            if not is_primitive(value):
                raise ValueError(
                    f"payload field '{key}' must be a primitive value, got {type(value).__name__}"
                )
        return v

    @property
    def topic(self) -> str:
        return integration_topic(self.source_context, self.event_type)

    @property
    def is_critical(self) -> bool:
        return self.criticality == Criticality.CRITICAL

    @classmethod
    def from_domain_event(
        cls,
        event: DomainEvent,
        source_context: Union[str, Enum],
        criticality: Criticality = Criticality.BEST_EFFORT,
        entity_type: Optional[Union[str, Enum]] = None,
        payload: Optional[Mapping[str, Any]] = None,
        **overrides: Any
    ) -> 'IntegrationEvent':
        """
        Translate a domain event into an integration event.

        Only public fields of the domain event are read. The domain event's ID
        becomes the causation ID and its correlation ID is carried over.

        Args:
            event: Source domain event
            source_context: Context that owns the domain event
            criticality: Publish failure policy for this event type
            entity_type: Public entity name (defaults to the aggregate type)
            payload: Payload to publish (defaults to the domain event payload)
            **overrides: Any other IntegrationEvent field (event_type, entity_id, version)

        Returns:
            New IntegrationEvent instance

        Raises:
            pydantic.ValidationError: If the payload holds non-primitive values
        """
        source_payload = event.payload if payload is None else payload
        fields: Dict[str, Any] = {
            'event_type': event.event_type,
            'source_context': source_context,
            'entity_type': entity_type or event.aggregate_type,
            'entity_id': event.aggregate_id,
            'payload': to_primitive(dict(source_payload)),
            'criticality': criticality,
            'metadata': IntegrationEventMetadata(
                correlation_id=event.metadata.correlation_id,
                causation_id=event.event_id,
            ),
        }
        fields.update(overrides)
        return cls(**fields)
