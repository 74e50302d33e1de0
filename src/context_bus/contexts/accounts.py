"""
Accounts context: domain events and their integration event promotion.

Registration, anonymization and deletion of a user are critical: downstream
contexts create or erase their own records in reaction, so a lost message
would leave them inconsistent. An email change is advisory and best-effort.
"""

from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional

from context_bus.broadcast.channel import BroadcastChannel
from context_bus.events.domain_event import Criticality, DomainEvent
from context_bus.events.integration_event import IntegrationEvent, to_primitive
from context_bus.reactions.promoter import IntegrationEventPromoter, PromotionPolicy

SOURCE_CONTEXT = 'accounts'
ENTITY_TYPE = 'user'


class AccountsEventType(str, Enum):
    """Event types raised by the Accounts context."""

    USER_REGISTERED = 'user_registered'
    USER_ANONYMIZED = 'user_anonymized'
    USER_DELETED = 'user_deleted'
    USER_EMAIL_CHANGED = 'user_email_changed'


# payload keys each integration event may expose
PUBLIC_FIELDS: Dict[AccountsEventType, tuple] = {
    AccountsEventType.USER_REGISTERED: ('email', 'name', 'roles'),
    AccountsEventType.USER_ANONYMIZED: ('anonymized_at',),
    AccountsEventType.USER_DELETED: ('deleted_at', 'reason'),
    AccountsEventType.USER_EMAIL_CHANGED: ('previous_email', 'email'),
}

CRITICALITY: Dict[AccountsEventType, Criticality] = {
    AccountsEventType.USER_REGISTERED: Criticality.CRITICAL,
    AccountsEventType.USER_ANONYMIZED: Criticality.CRITICAL,
    AccountsEventType.USER_DELETED: Criticality.CRITICAL,
    AccountsEventType.USER_EMAIL_CHANGED: Criticality.BEST_EFFORT,
}


def user_event(
    event_type: AccountsEventType,
    user_id: str,
    payload: Optional[Mapping[str, Any]] = None,
    **opts: Any
) -> DomainEvent:
    """Create an Accounts domain event about a user."""
    opts.setdefault('criticality', CRITICALITY[event_type])
    return DomainEvent.new(event_type, user_id, ENTITY_TYPE, {**(payload or {}), 'user_id': user_id}, **opts)


def integration_event(
    event_type: AccountsEventType,
    user_id: Any,
    payload: Optional[Mapping[str, Any]] = None,
    criticality: Optional[Criticality] = None,
    **overrides: Any
) -> IntegrationEvent:
    """
    Create an Accounts integration event.

    The canonical ``user_id`` argument always wins over a ``user_id`` key in
    the payload.

    Raises:
        ValueError: If user_id is not a non-empty string
    """
    if not isinstance(user_id, str) or not user_id:
        raise ValueError(f"{AccountsEventType(event_type).value} requires a non-empty user_id string, got: {user_id!r}")

    return IntegrationEvent(
        event_type=event_type,
        source_context=SOURCE_CONTEXT,
        entity_type=ENTITY_TYPE,
        entity_id=user_id,
        payload={**to_primitive(dict(payload or {})), 'user_id': user_id},
        criticality=criticality or CRITICALITY[AccountsEventType(event_type)],
        **overrides
    )


def translate(event: DomainEvent, source_context: str, criticality: Criticality) -> IntegrationEvent:
    """Translate an Accounts domain event, exposing only its public fields."""
    event_type = AccountsEventType(event.event_type)
    public = {key: event.payload[key] for key in PUBLIC_FIELDS[event_type] if key in event.payload}
    return integration_event(
        event_type,
        event.aggregate_id,
        public,
        criticality=criticality,
        metadata={
            'correlation_id': event.metadata.correlation_id,
            'causation_id': event.event_id,
        },
    )


def accounts_policies() -> Iterable[PromotionPolicy]:
    return [
        PromotionPolicy(event_type=event_type, criticality=criticality, translate=translate)
        for event_type, criticality in CRITICALITY.items()
    ]


def build_accounts_promoter(channel: BroadcastChannel) -> IntegrationEventPromoter:
    """Promoter for every Accounts event type, ready to register on the Accounts bus."""
    return IntegrationEventPromoter(SOURCE_CONTEXT, channel, accounts_policies())
