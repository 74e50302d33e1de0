"""
Domain Event schema.

A domain event records that something happened inside one bounded context. It
is created by a business operation after its own state change is durable and
handed to the dispatcher; it is never mutated afterwards.
"""

from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Dict, Mapping, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class Criticality(str, Enum):
    """Whether losing a notification about an event is acceptable."""

    BEST_EFFORT = 'best_effort'
    CRITICAL = 'critical'


def identifier_value(value: Any) -> Any:
    """Return the plain value of an enum identifier, leave everything else alone."""
    if isinstance(value, Enum):
        return value.value
    return value


def freeze(value: Any) -> Any:
    """Recursively turn dicts into read-only mappings and lists into tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, set):
        return frozenset(value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of freeze, for serialization."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


class EventMetadata(BaseModel):
    """Optional context attached to every event."""

    model_config = ConfigDict(frozen=True)

    criticality: Criticality = Criticality.BEST_EFFORT
    correlation_id: Optional[str] = None
    causation_id: Optional[str] = None
    user_id: Optional[str] = None


class DomainEvent(BaseModel):
    """Something that happened inside one bounded context."""

    model_config = ConfigDict(frozen=True)

    event_id: Annotated[str, Field(
        default_factory=lambda: str(uuid4()),
        description='Unique identifier of this event instance'
    )]

    event_type: Annotated[str, Field(
        min_length=1,
        description='Identifier scoping which handlers apply',
        examples=['user_registered']
    )]

    aggregate_id: Annotated[Union[str, int], Field(
        description='Identifier of the entity the event is about'
    )]

    aggregate_type: Annotated[str, Field(
        min_length=1,
        description='Coarse category of the entity',
        examples=['user', 'conversation']
    )]

    payload: Annotated[Mapping[str, Any], Field(
        default_factory=dict,
        description='Event specific data, read-only'
    )]

    occurred_at: Annotated[datetime, Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description='UTC timestamp set at creation'
    )]

    metadata: EventMetadata = Field(default_factory=EventMetadata)

    @field_validator('event_type', 'aggregate_type', mode='before')
    @classmethod
    def normalize_identifier(cls, v: Any) -> Any:
        """Accept str enums and store their plain value."""
        return identifier_value(v)

    @field_validator('payload', mode='after')
    @classmethod
    def freeze_payload(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        # private copy all the way down, callers keep no handle on stored data
        return freeze(v)

    @field_serializer('payload')
    def serialize_payload(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return thaw(payload)

    @classmethod
    def new(
        cls,
        event_type: Union[str, Enum],
        aggregate_id: Union[str, int],
        aggregate_type: Union[str, Enum],
        payload: Optional[Mapping[str, Any]] = None,
        **opts: Any
    ) -> 'DomainEvent':
        """
        Create a domain event with a generated ID and timestamp.

        Args:
            event_type: Event type identifier (e.g. 'user_registered')
            aggregate_id: ID of the entity that generated the event
            aggregate_type: Type of the entity (e.g. 'user')
            payload: Event specific data
            **opts: Metadata options (criticality, correlation_id, causation_id, user_id)

        Returns:
            New DomainEvent instance
        """
        return cls(
            event_type=event_type,
            aggregate_id=aggregate_id,
            aggregate_type=aggregate_type,
            payload=payload or {},
            metadata=EventMetadata(**opts),
        )

    @property
    def is_critical(self) -> bool:
        return self.metadata.criticality == Criticality.CRITICAL
