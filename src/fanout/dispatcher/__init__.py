"""Named-event dispatcher — in-process pub/sub with async fan-out.

Learn: Two pieces:
1. SubscriptionRegistry — event name → ordered subscriptions, lock-protected
2. Dispatcher — registration API plus publish(), which snapshots the
   registry and runs every matching handler as its own asyncio task

Producers and consumers only share an event name; neither holds a
reference to the other.
"""

from fanout.dispatcher.dispatcher import (
    Dispatcher,
    DispatcherConfig,
    DispatcherStats,
    InvalidHandlerError,
)
from fanout.dispatcher.registry import Subscription, SubscriptionRegistry

__all__ = [
    "Dispatcher",
    "DispatcherConfig",
    "DispatcherStats",
    "InvalidHandlerError",
    "Subscription",
    "SubscriptionRegistry",
]
