"""Subscription registry — the dispatcher's only shared mutable state.

Learn: The registry maps each event name to an ordered list of
Subscriptions. Every read and write goes through one lock, but the lock
is only ever held for short synchronous sections: handlers never run
while it is held. That is what lets a handler call back into
subscribe()/unsubscribe()/publish() without deadlocking.

publish() never iterates a live list. It asks for a snapshot(), which
copies the exact-match list plus the wildcard list and, in the same
critical section, removes every `once` entry it copied. Two concurrent
publishes therefore can't both see the same one-shot subscription.
"""

import inspect
import itertools
import threading
from dataclasses import dataclass
from typing import Optional, Union

from fanout.events.types import WILDCARD, EventName, Handler


@dataclass(frozen=True, eq=False)
class Subscription:
    """A registered (event, handler) pair. Compared by identity only."""

    token: int
    event: EventName
    handler: Handler
    once: bool = False


# What unsubscribe() accepts: the token, the Subscription, or the handler.
SubscriptionTarget = Union[int, Subscription, Handler]


def _matches(sub: Subscription, target: SubscriptionTarget) -> bool:
    if isinstance(target, Subscription):
        return sub is target
    if isinstance(target, int) and not isinstance(target, bool):
        return sub.token == target
    if inspect.ismethod(target):
        # obj.method builds a new bound method on every access
        return sub.handler == target
    return sub.handler is target


class SubscriptionRegistry:
    """Ordered, lock-protected mapping of event name → subscriptions."""

    def __init__(self, wildcard: EventName = WILDCARD):
        self.wildcard = wildcard
        self._subs: dict[EventName, list[Subscription]] = {}
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)

    def add(self, event: EventName, handler: Handler, *, once: bool = False) -> Subscription:
        """Append a subscription to the end of `event`'s list."""
        with self._lock:
            sub = Subscription(
                token=next(self._tokens),
                event=event,
                handler=handler,
                once=once,
            )
            self._subs.setdefault(event, []).append(sub)
        return sub

    def remove(self, event: EventName, target: SubscriptionTarget) -> Optional[Subscription]:
        """Remove the first subscription for `event` matching `target`.

        Returns the removed subscription, or None if nothing matched.
        """
        with self._lock:
            subs = self._subs.get(event)
            if not subs:
                return None
            for index, sub in enumerate(subs):
                if _matches(sub, target):
                    del subs[index]
                    break
            else:
                return None
            if not subs:
                del self._subs[event]
            return sub

    def snapshot(self, event: EventName) -> tuple[Subscription, ...]:
        """Copy the subscribers for a publish of `event`.

        Exact-match subscribers come first, then wildcard subscribers,
        each group in registration order. One-shot subscriptions in the
        copy are removed from the live registry before returning.
        """
        with self._lock:
            subs = list(self._subs.get(event, ()))
            if event != self.wildcard:
                subs.extend(self._subs.get(self.wildcard, ()))
            for sub in subs:
                if sub.once:
                    self._discard(sub)
        return tuple(subs)

    def _discard(self, sub: Subscription) -> None:
        # Caller holds the lock.
        subs = self._subs.get(sub.event)
        if subs is None:
            return
        for index, candidate in enumerate(subs):
            if candidate is sub:
                del subs[index]
                break
        if not subs:
            del self._subs[sub.event]

    def subscriptions(self, event: EventName) -> tuple[Subscription, ...]:
        with self._lock:
            return tuple(self._subs.get(event, ()))

    def count(self, event: EventName) -> int:
        with self._lock:
            return len(self._subs.get(event, ()))

    def names(self) -> list[EventName]:
        """Event names with at least one subscriber, wildcard excluded."""
        with self._lock:
            return [name for name in self._subs if name != self.wildcard]

    def clear(self, event: Optional[EventName] = None) -> None:
        with self._lock:
            if event is None:
                self._subs.clear()
            else:
                self._subs.pop(event, None)
