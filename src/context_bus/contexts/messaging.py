"""
Messaging context: live view notifications.

Every messaging event refreshes the ``conversation:{event_type}`` topic. A newly
created conversation is also pushed to each participant's own topic so inbox
views that are not yet subscribed to the conversation pick it up.
"""

from enum import Enum
from typing import List

from context_bus.broadcast.channel import BroadcastChannel
from context_bus.events.domain_event import DomainEvent
from context_bus.reactions.notifier import UINotifier

AGGREGATE_TYPE = 'conversation'


class MessagingEventType(str, Enum):
    """Event types raised by the Messaging context."""

    MESSAGE_SENT = 'message_sent'
    MESSAGES_READ = 'messages_read'
    BROADCAST_SENT = 'broadcast_sent'
    CONVERSATION_CREATED = 'conversation_created'
    CONVERSATIONS_ARCHIVED = 'conversations_archived'


def participant_topic(user_id: str, event_type: str) -> str:
    return f"user:{user_id}:{event_type}"


class MessagingLiveViewNotifier(UINotifier):
    """UI notifier for the Messaging context."""

    def topics_for(self, event: DomainEvent) -> List[str]:
        topics = super().topics_for(event)
        if event.event_type == MessagingEventType.CONVERSATION_CREATED.value:
            participant_ids = event.payload.get('participant_ids') or ()
            # a lone id is one participant, not one per character
            if isinstance(participant_ids, (str, int)):
                participant_ids = (participant_ids,)
            topics.extend(participant_topic(user_id, event.event_type) for user_id in participant_ids)
        return topics


def build_messaging_notifier(channel: BroadcastChannel) -> MessagingLiveViewNotifier:
    return MessagingLiveViewNotifier(channel)


def messaging_registrations(channel: BroadcastChannel, priority: int = 200) -> list:
    """Start-time handler entries subscribing the notifier to every Messaging event."""
    notifier = build_messaging_notifier(channel)
    return [(event_type, notifier, {'priority': priority}) for event_type in MessagingEventType]
