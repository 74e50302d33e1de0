"""
Broadcast Channel abstraction.

The broadcast channel is a topic-addressed publish/subscribe primitive shared
by the integration event promoter, the UI notifier and remote subscribers.
Publishing never raises for transport problems; it returns a PublishResult
that carries an error reason instead.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from context_bus.observability import logger

Subscriber = Callable[[str, Any], None]


@dataclass
class PublishResult:
    """Result of publishing one message on a topic."""

    success: bool
    topic: str
    error: Optional[str] = None
    reason: Any = None
    message_id: Optional[str] = None

    @classmethod
    def ok(cls, topic: str, message_id: Optional[str] = None) -> 'PublishResult':
        return cls(success=True, topic=topic, message_id=message_id)

    @classmethod
    def failed(cls, topic: str, reason: Any, error: str = 'publish_failed') -> 'PublishResult':
        return cls(success=False, topic=topic, error=error, reason=reason)


@runtime_checkable
class BroadcastChannel(Protocol):
    """Topic-addressed publish primitive."""

    def publish(self, topic: str, message: Any) -> PublishResult:
        ...


@dataclass(frozen=True)
class Publication:
    """One message recorded by the in-memory channel."""

    topic: str
    message: Any
    published_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class InMemoryBroadcastChannel:
    """
    Process-local broadcast channel.

    Subscribers are called synchronously in the publisher's thread. Every
    successful publish is kept in ``published`` so tests and local tooling
    can inspect what went out.
    """

    def __init__(self, keep_history: bool = True):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Tuple[Subscriber, ...]] = {}
        self._published: List[Publication] = []
        self.keep_history = keep_history

    def subscribe(self, topic: str, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers[topic] = self._subscribers.get(topic, ()) + (callback,)

    def unsubscribe(self, topic: str, callback: Subscriber) -> bool:
        with self._lock:
            current = self._subscribers.get(topic, ())
            remaining = tuple(subscriber for subscriber in current if subscriber is not callback)
            if remaining:
                self._subscribers[topic] = remaining
            else:
                self._subscribers.pop(topic, None)
            return len(remaining) < len(current)

    def publish(self, topic: str, message: Any) -> PublishResult:
        with self._lock:
            subscribers = self._subscribers.get(topic, ())
            if self.keep_history:
                self._published.append(Publication(topic=topic, message=message))

        errors = []
        for subscriber in subscribers:
            try:
                subscriber(topic, message)
            except Exception as e:
                logger.error(
                    f"Subscriber failed on topic {topic}: {e}",
                    extra={"topic": topic, "error": str(e)}
                )
                errors.append(str(e))

        if errors:
            return PublishResult.failed(topic, reason=errors[0], error='subscriber_failed')
        return PublishResult.ok(topic)

    @property
    def published(self) -> List[Publication]:
        with self._lock:
            return list(self._published)

    def messages_for(self, topic: str) -> List[Any]:
        return [publication.message for publication in self.published if publication.topic == topic]

    def topics(self) -> List[str]:
        return [publication.topic for publication in self.published]

    def clear(self) -> None:
        with self._lock:
            self._published.clear()


def publish_safely(channel: BroadcastChannel, topic: str, message: Any) -> PublishResult:
    """Publish and convert a raising channel into a failed PublishResult."""
    try:
        result = channel.publish(topic, message)
    except Exception as e:
        return PublishResult.failed(topic, reason=str(e), error='channel_error')

    if not isinstance(result, PublishResult):
        return PublishResult.failed(topic, reason=f"unexpected publish result {result!r}", error='channel_error')
    return result
