"""
Unit tests for the handler registry.

This module tests start-time loading, dynamic subscription, handler reference
resolution and concurrent subscription.
"""

import threading
from enum import Enum

import pytest

import sample_handlers
from context_bus.exceptions import HandlerResolutionError
from context_bus.handlers import DEFAULT_PRIORITY, OK, HandlerRegistry
from context_bus.handlers.registration import FunctionReference, read_priority, resolve_handler


class SampleEventType(str, Enum):
    ITEM_ADDED = "item_added"


class TestRegistryStart:
    """Test cases for starting a registry."""

    def test_start_empty(self):
        registry = HandlerRegistry.start("accounts", [])

        assert registry.context == "accounts"
        assert registry.get_handlers("anything") == ()
        assert registry.event_types() == []
        assert registry.handler_count() == 0

    def test_start_with_entries(self, recorder):
        """Test that start-time entries are loaded with their options."""
        h1 = recorder.handler("h1")
        h2 = recorder.handler("h2")

        registry = HandlerRegistry.start("accounts", [
            ("user_registered", h1),
            ("user_registered", h2, {"priority": 10}),
            ("user_deleted", h1, None),
        ])

        registrations = registry.get_handlers("user_registered")
        assert [r.handler for r in registrations] == [h1, h2]
        assert [r.priority for r in registrations] == [DEFAULT_PRIORITY, 10]
        assert len(registry.get_handlers("user_deleted")) == 1
        assert registry.handler_count() == 3
        assert sorted(registry.event_types()) == ["user_deleted", "user_registered"]

    def test_start_keeps_initial_handlers(self, recorder):
        entries = [("e", recorder.handler("h"))]

        registry = HandlerRegistry.start("ctx", entries)

        assert registry.initial_handlers == tuple(entries)

    def test_custom_default_priority(self, recorder):
        registry = HandlerRegistry.start("ctx", [("e", recorder.handler("h"))], default_priority=7)
        registry.subscribe("e", recorder.handler("d"))

        assert [r.priority for r in registry.get_handlers("e")] == [7, 7]

    def test_enum_event_types(self, recorder):
        registry = HandlerRegistry.start("ctx", [(SampleEventType.ITEM_ADDED, recorder.handler("h"))])

        assert len(registry.get_handlers("item_added")) == 1
        assert len(registry.get_handlers(SampleEventType.ITEM_ADDED)) == 1

    def test_string_reference(self):
        registry = HandlerRegistry.start("ctx", [("e", "sample_handlers:acknowledge")])

        handler = registry.get_handlers("e")[0].handler
        assert isinstance(handler, FunctionReference)
        assert handler.target is sample_handlers.acknowledge
        assert registry.get_handlers("e")[0].name == "sample_handlers.acknowledge"

    def test_tuple_reference(self, make_event):
        registry = HandlerRegistry.start("ctx", [("e", ("sample_handlers", "reject"))])
        event = make_event("e")

        result = registry.get_handlers("e")[0].handler(event)

        assert result.reason == "rejected"
        assert ("reject", event.event_id) in sample_handlers.CALLS

    def test_unknown_module_fails_start(self):
        with pytest.raises(HandlerResolutionError) as exc_info:
            HandlerRegistry.start("ctx", [("e", "no_such_module_here:handler")])

        assert exc_info.value.original_error is not None

    def test_missing_function_fails_start(self):
        with pytest.raises(HandlerResolutionError):
            HandlerRegistry.start("ctx", [("e", ("sample_handlers", "does_not_exist"))])

    def test_non_callable_attribute_fails_start(self):
        with pytest.raises(HandlerResolutionError):
            HandlerRegistry.start("ctx", [("e", "sample_handlers:NOT_CALLABLE")])

    @pytest.mark.parametrize("reference", ["no_separator", ":missing_module", 42, ("only_one",)])
    def test_malformed_references(self, reference):
        with pytest.raises(HandlerResolutionError):
            resolve_handler(reference)

    def test_malformed_entry(self, recorder):
        with pytest.raises(ValueError):
            HandlerRegistry.start("ctx", [("e",)])

    def test_invalid_priority_option(self, recorder):
        with pytest.raises(ValueError):
            HandlerRegistry.start("ctx", [("e", recorder.handler("h"), {"priority": "high"})])


class TestRegistrySubscribe:
    """Test cases for dynamic subscription."""

    def test_subscribe_appends(self, registry, recorder):
        registry.subscribe("e", recorder.handler("a"), priority=5)
        registration = registry.subscribe("e", recorder.handler("b"))

        assert registration.event_type == "e"
        assert registration.priority == DEFAULT_PRIORITY
        assert registration.name == "record_b"
        assert [r.name for r in registry.get_handlers("e")] == ["record_a", "record_b"]

    def test_subscribe_visible_immediately(self, registry, recorder):
        registry.subscribe("e", recorder.handler("a"))

        assert len(registry.get_handlers("e")) == 1

    def test_sequence_increases(self, registry, recorder):
        first = registry.subscribe("e", recorder.handler("a"))
        second = registry.subscribe("other", recorder.handler("b"))

        assert second.sequence > first.sequence

    def test_snapshot_is_not_affected_by_later_subscribe(self, registry, recorder):
        registry.subscribe("e", recorder.handler("a"))
        snapshot = registry.get_handlers("e")

        registry.subscribe("e", recorder.handler("b"))

        assert len(snapshot) == 1
        assert len(registry.get_handlers("e")) == 2

    def test_subscribe_rejects_non_callable(self, registry):
        with pytest.raises(TypeError):
            registry.subscribe("e", "not a handler")

    def test_subscribe_rejects_bool_priority(self, registry, recorder):
        with pytest.raises(ValueError):
            registry.subscribe("e", recorder.handler("a"), priority=True)

    def test_concurrent_subscribe_loses_nothing(self, registry):
        """Test that parallel subscribers all end up registered."""
        threads_count = 8
        per_thread = 25
        barrier = threading.Barrier(threads_count)

        def subscribe_many(worker):
            barrier.wait()
            for index in range(per_thread):
                registry.subscribe("e", lambda event: OK, priority=worker * 1000 + index)

        threads = [threading.Thread(target=subscribe_many, args=(worker,)) for worker in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        registrations = registry.get_handlers("e")
        assert len(registrations) == threads_count * per_thread
        assert len({r.sequence for r in registrations}) == threads_count * per_thread
        assert len({r.priority for r in registrations}) == threads_count * per_thread


class TestReadPriority:
    """Test cases for the priority option."""

    def test_missing_uses_default(self):
        assert read_priority(None) == DEFAULT_PRIORITY
        assert read_priority({}) == DEFAULT_PRIORITY
        assert read_priority({"priority": None}, 3) == 3

    def test_explicit(self):
        assert read_priority({"priority": -5}) == -5
