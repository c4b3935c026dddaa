"""Rule subscription parsing and storage for debugport."""

from debugport.subscriptions.parser import (
    SubscriptionParseError,
    parse_subscription,
    pin_memory_identity,
)
from debugport.subscriptions.store import SubscriptionStore

__all__ = [
    "SubscriptionParseError",
    "SubscriptionStore",
    "parse_subscription",
    "pin_memory_identity",
]
