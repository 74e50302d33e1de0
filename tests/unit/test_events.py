"""
Unit tests for the event schemas.

This module tests construction, immutability and translation of domain and
integration events, and the topic naming conventions.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

import pytest
from pydantic import ValidationError

from context_bus.events import (
    Criticality,
    DomainEvent,
    IntegrationEvent,
    integration_topic,
    ui_topic,
    ui_topic_for,
)


class SampleEventType(str, Enum):
    ITEM_ADDED = "item_added"


class TestDomainEvent:
    """Test cases for DomainEvent."""

    def test_new_sets_id_and_timestamp(self):
        """Test that new() generates an ID and a UTC timestamp."""
        event = DomainEvent.new("user_registered", "user-1", "user", {"email": "a@example.com"})

        assert event.event_type == "user_registered"
        assert event.aggregate_id == "user-1"
        assert event.aggregate_type == "user"
        assert event.payload["email"] == "a@example.com"
        assert event.event_id
        assert event.occurred_at.tzinfo is not None
        assert event.metadata.criticality == Criticality.BEST_EFFORT

    def test_enum_identifiers_are_normalized(self):
        """Test that str enums are stored as their plain values."""
        event = DomainEvent.new(SampleEventType.ITEM_ADDED, 7, "cart")

        assert event.event_type == "item_added"
        assert type(event.event_type) is str
        assert event.aggregate_id == 7

    def test_event_is_frozen(self):
        """Test that event fields cannot be reassigned."""
        event = DomainEvent.new("x", "1", "thing")

        with pytest.raises(ValidationError):
            event.event_type = "y"

    def test_payload_is_read_only(self):
        """Test that handlers cannot mutate the payload."""
        event = DomainEvent.new("x", "1", "thing", {"count": 1})

        with pytest.raises(TypeError):
            event.payload["count"] = 2

        assert event.payload["count"] == 1

    def test_nested_payload_is_read_only(self):
        """Test that lists and dicts inside the payload cannot be changed either."""
        roles = ["parent"]
        event = DomainEvent.new("x", "1", "thing", {"roles": roles, "address": {"city": "Berlin"}})

        with pytest.raises(AttributeError):
            event.payload["roles"].append("admin")
        with pytest.raises(TypeError):
            event.payload["address"]["city"] = "Paris"

        roles.append("admin")

        assert event.payload["roles"] == ("parent",)
        assert event.payload["address"]["city"] == "Berlin"

    def test_nested_payload_serializes_to_plain_values(self):
        event = DomainEvent.new("x", "1", "thing", {"roles": ["parent"], "address": {"city": "Berlin"}})

        dumped = event.model_dump()

        assert dumped["payload"] == {"roles": ["parent"], "address": {"city": "Berlin"}}
        assert type(dumped["payload"]["address"]) is dict
        assert '"roles":["parent"]' in event.model_dump_json()

    def test_payload_is_copied_from_caller(self):
        """Test that mutating the caller's dict does not change the event."""
        source = {"count": 1}
        event = DomainEvent.new("x", "1", "thing", source)

        source["count"] = 99

        assert event.payload["count"] == 1

    def test_metadata_options(self):
        """Test that metadata options are recorded."""
        event = DomainEvent.new(
            "x", "1", "thing",
            criticality=Criticality.CRITICAL,
            correlation_id="corr-1",
            user_id="actor-1",
        )

        assert event.is_critical
        assert event.metadata.correlation_id == "corr-1"
        assert event.metadata.user_id == "actor-1"

    def test_serialization(self):
        """Test that the read-only payload serializes to a plain dict."""
        event = DomainEvent.new("x", "1", "thing", {"count": 1})

        dumped = event.model_dump()
        assert dumped["payload"] == {"count": 1}
        assert isinstance(dumped["payload"], dict)
        assert '"count":1' in event.model_dump_json()

    def test_empty_event_type_rejected(self):
        with pytest.raises(ValidationError):
            DomainEvent.new("", "1", "thing")


class TestIntegrationEvent:
    """Test cases for IntegrationEvent."""

    def test_primitive_payload_accepted(self):
        """Test that primitives, lists and dicts of primitives are accepted."""
        event = IntegrationEvent(
            event_type="user_registered",
            source_context="accounts",
            entity_type="user",
            entity_id="user-1",
            payload={"id": "user-1", "age": 9, "score": 1.5, "active": True,
                     "nickname": None, "roles": ["parent"], "address": {"city": "Berlin"}},
        )

        assert event.payload["roles"] == ["parent"]
        assert event.version == 1
        assert event.criticality == Criticality.BEST_EFFORT

    def test_non_primitive_payload_rejected(self):
        """Test that internal representations cannot leak into the payload."""
        with pytest.raises(ValidationError) as exc_info:
            IntegrationEvent(
                event_type="user_registered",
                source_context="accounts",
                entity_type="user",
                entity_id="user-1",
                payload={"user": object()},
            )

        assert "must be a primitive value" in str(exc_info.value)

    def test_nested_non_primitive_rejected(self):
        with pytest.raises(ValidationError):
            IntegrationEvent(
                event_type="e", source_context="c", entity_type="t", entity_id="1",
                payload={"items": [datetime.now(timezone.utc)]},
            )

    def test_topic(self):
        event = IntegrationEvent(
            event_type="child_data_anonymized", source_context="identity",
            entity_type="child", entity_id="c-1",
        )

        assert event.topic == "integration:identity:child_data_anonymized"

    def test_from_domain_event(self):
        """Test translation from a domain event's public fields."""
        occurred = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        reference = uuid4()
        domain_event = DomainEvent.new(
            "enrollment_confirmed", "enr-1", "enrollment",
            {"program_id": reference, "confirmed_at": occurred, "level": SampleEventType.ITEM_ADDED},
            correlation_id="corr-1",
        )

        event = IntegrationEvent.from_domain_event(
            domain_event, "enrollment", criticality=Criticality.CRITICAL
        )

        assert event.event_type == "enrollment_confirmed"
        assert event.source_context == "enrollment"
        assert event.entity_type == "enrollment"
        assert event.entity_id == "enr-1"
        assert event.is_critical
        assert event.payload == {
            "program_id": str(reference),
            "confirmed_at": "2024-01-01T12:00:00+00:00",
            "level": "item_added",
        }
        assert event.metadata.correlation_id == "corr-1"
        assert event.metadata.causation_id == domain_event.event_id

    def test_from_domain_event_overrides(self):
        domain_event = DomainEvent.new("user_registered", "u-1", "account", {"secret": "x"})

        event = IntegrationEvent.from_domain_event(
            domain_event, "accounts", entity_type="user", payload={"user_id": "u-1"}, version=2
        )

        assert event.entity_type == "user"
        assert event.payload == {"user_id": "u-1"}
        assert event.version == 2


class TestTopics:
    """Test cases for topic naming conventions."""

    def test_integration_topic(self):
        assert integration_topic("accounts", "user_registered") == "integration:accounts:user_registered"

    def test_integration_topic_with_enum(self):
        assert integration_topic("cart", SampleEventType.ITEM_ADDED) == "integration:cart:item_added"

    def test_ui_topic(self):
        assert ui_topic("conversation", "message_sent") == "conversation:message_sent"

    def test_ui_topic_for_event(self):
        event = DomainEvent.new("message_sent", "conv-1", "conversation")

        assert ui_topic_for(event) == "conversation:message_sent"
