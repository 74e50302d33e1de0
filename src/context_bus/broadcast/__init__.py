"""
Broadcast channels used by the standard reaction handlers.
"""

from .channel import (
    BroadcastChannel,
    InMemoryBroadcastChannel,
    Publication,
    PublishResult,
    publish_safely,
)

from .eventbridge import EventBridgeBroadcastChannel

__all__ = [
    'BroadcastChannel',
    'InMemoryBroadcastChannel',
    'Publication',
    'PublishResult',
    'publish_safely',
    'EventBridgeBroadcastChannel',
]
