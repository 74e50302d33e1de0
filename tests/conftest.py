"""
Pytest configuration and shared fixtures for the context event bus.

This module provides common test fixtures and configuration used across
unit, integration and benchmark tests.
"""

import os

# Powertools reads these when context_bus.observability is imported
os.environ.update({
    "AWS_DEFAULT_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "test",
    "AWS_SECRET_ACCESS_KEY": "test",
    "POWERTOOLS_SERVICE_NAME": "test-context-bus",
    "POWERTOOLS_METRICS_NAMESPACE": "TestContextBus",
    "POWERTOOLS_TRACE_DISABLED": "true",
    "LOG_LEVEL": "DEBUG",
    # re-read environment models on every call so tests can change them
    "LAMBDA_ENV_MODELER_DISABLE_CACHE": "true",
})

import threading
from typing import Any, Callable, List
from unittest.mock import Mock

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from context_bus.broadcast.channel import InMemoryBroadcastChannel, PublishResult
from context_bus.events.domain_event import DomainEvent
from context_bus.handlers.registry import HandlerRegistry
from context_bus.handlers.results import OK
from context_bus.observability import metrics


class Recorder:
    """Side channel handlers write to, so tests can see which ran and in what order."""

    def __init__(self):
        self._lock = threading.Lock()
        self.calls: List[Any] = []

    def record(self, value: Any) -> None:
        with self._lock:
            self.calls.append(value)

    def handler(self, label: Any, result: Any = OK) -> Callable[[DomainEvent], Any]:
        """Build a handler that records its label and returns ``result``."""
        def record_and_return(event: DomainEvent) -> Any:
            self.record(label)
            return result

        record_and_return.__name__ = record_and_return.__qualname__ = f"record_{label}"
        return record_and_return

    def crashing_handler(self, label: Any, message: str) -> Callable[[DomainEvent], Any]:
        def record_and_raise(event: DomainEvent) -> Any:
            self.record(label)
            raise RuntimeError(message)

        return record_and_raise


# Sample data fixtures
@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def registry() -> HandlerRegistry:
    """An empty registry for an isolated test context."""
    return HandlerRegistry.start("test_context", [])


@pytest.fixture
def channel() -> InMemoryBroadcastChannel:
    return InMemoryBroadcastChannel()


@pytest.fixture
def failing_channel() -> Mock:
    """Broadcast channel whose every publish fails with {error, reason}."""
    failing = Mock()
    failing.publish.side_effect = lambda topic, message: PublishResult.failed(topic, reason="pubsub_down")
    return failing


@pytest.fixture
def make_event() -> Callable[..., DomainEvent]:
    def factory(event_type: str = "x_happened", aggregate_id: str = "agg-1",
                aggregate_type: str = "thing", payload: dict = None, **opts: Any) -> DomainEvent:
        return DomainEvent.new(event_type, aggregate_id, aggregate_type, payload or {}, **opts)

    return factory


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")
    config.addinivalue_line("markers", "benchmark: Performance benchmark tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)
        elif f"{os.sep}integration{os.sep}" in path:
            item.add_marker(pytest.mark.integration)
        elif f"{os.sep}benchmark{os.sep}" in path:
            item.add_marker(pytest.mark.benchmark)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Drop metrics accumulated by the previous test."""
    metrics.clear_metrics()
    yield
    metrics.clear_metrics()


# AWS fixtures
@pytest.fixture
def eventbridge_client():
    """EventBridge client backed by moto, with a custom bus created."""
    with mock_aws():
        client = boto3.client("events", region_name="us-east-1")
        client.create_event_bus(Name="test-context-bus")
        yield client


# Error simulation fixtures
@pytest.fixture
def client_error():
    """Build botocore ClientErrors for testing error handling."""
    def create_error(error_code: str, message: str = "Test error") -> ClientError:
        return ClientError(
            error_response={
                "Error": {
                    "Code": error_code,
                    "Message": message,
                }
            },
            operation_name="PutEvents"
        )

    return create_error
