"""
Standard reaction handlers built on the dispatcher: promotion of domain events
to integration events, and UI refresh notifications.
"""

from .promoter import (
    IntegrationEventPromoter,
    PromotionPolicy,
    promotions,
)

from .notifier import UINotifier

__all__ = [
    'IntegrationEventPromoter',
    'PromotionPolicy',
    'promotions',
    'UINotifier',
]
