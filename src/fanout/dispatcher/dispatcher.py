"""Named-event dispatcher — subscribe, unsubscribe, publish with fan-out.

Learn: The dispatcher owns a SubscriptionRegistry and adds the one
operation that may suspend: publish(). On each publish:
1. Take a snapshot (exact-match subscribers, then wildcard subscribers).
   One-shot subscriptions are deregistered in the same step.
2. Start one asyncio task per handler, in snapshot order.
3. Wait for every task — success or failure, never fail fast.
4. Return a PublishResult with one outcome per handler.

Handlers run against the snapshot, not the registry, so a handler may
subscribe, unsubscribe or publish again without affecting the publish
that invoked it.

Key design decisions:
- Handler errors are values (HandlerFailure), not exceptions
- Tokens identify subscriptions; handlers are compared by identity
- No lock is held while a handler runs
- Optional per-handler timeout via asyncio.wait_for
"""

import asyncio
import inspect
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import structlog

from fanout.config import Settings, settings
from fanout.dispatcher.registry import (
    Subscription,
    SubscriptionRegistry,
    SubscriptionTarget,
)
from fanout.events.outcomes import (
    HandlerFailure,
    HandlerSuccess,
    Outcome,
    PublishResult,
)
from fanout.events.types import WILDCARD, EventName, Handler

logger = structlog.get_logger()


class InvalidHandlerError(TypeError):
    """Raised when subscribe() is given something that is not callable."""


@dataclass
class DispatcherConfig:
    """Configuration for a dispatcher instance."""
    wildcard: EventName = WILDCARD
    handler_timeout: Optional[float] = None  # seconds; None = no timeout
    log_handler_failures: bool = True

    def __post_init__(self):
        if self.handler_timeout is not None and self.handler_timeout <= 0:
            raise ValueError(
                "handler_timeout must be a positive number of seconds "
                "(use None to disable the timeout)"
            )

    @classmethod
    def from_settings(cls, s: Settings) -> "DispatcherConfig":
        return cls(
            wildcard=s.wildcard,
            handler_timeout=s.handler_timeout_seconds,
            log_handler_failures=s.log_handler_failures,
        )


@dataclass
class DispatcherStats:
    """Runtime statistics for monitoring."""
    published: int = 0
    delivered: int = 0
    failed: int = 0
    in_flight: int = 0
    started_at: Optional[datetime] = None


class Dispatcher:
    """Named-event publish/subscribe dispatcher.

    Learn: Usage from any coroutine:

        bus = Dispatcher()
        token = bus.subscribe("msg", handle_msg)
        bus.subscribe_once("msg", handle_first_msg)
        bus.subscribe(WILDCARD, audit)

        result = await bus.publish("msg", "hi")
        if not result.ok:
            ...  # inspect result.failures

        bus.unsubscribe("msg", token)
    """

    def __init__(self, config: Optional[DispatcherConfig] = None):
        self.config = config or DispatcherConfig.from_settings(settings)
        self.stats = DispatcherStats(started_at=datetime.now(timezone.utc))
        self._registry = SubscriptionRegistry(wildcard=self.config.wildcard)
        self._background: set[asyncio.Task] = set()

    @property
    def wildcard(self) -> EventName:
        return self.config.wildcard

    # ─── Registration ──────────────────────────────────────

    def subscribe(self, event: EventName, handler: Handler) -> int:
        """Register a persistent handler. Returns its token."""
        return self._add(event, handler, once=False)

    def subscribe_once(self, event: EventName, handler: Handler) -> int:
        """Register a handler that fires at most once, then deregisters."""
        return self._add(event, handler, once=True)

    def on(self, event: EventName, *, once: bool = False) -> Callable[[Handler], Handler]:
        """Decorator form of subscribe()/subscribe_once().

            @bus.on("user.created")
            async def welcome(user): ...
        """
        def decorator(handler: Handler) -> Handler:
            self._add(event, handler, once=once)
            return handler
        return decorator

    def _add(self, event: EventName, handler: Handler, *, once: bool) -> int:
        if not callable(handler):
            raise InvalidHandlerError(
                f"Handler for event {event!r} must be callable, "
                f"got {type(handler).__name__}"
            )
        sub = self._registry.add(event, handler, once=once)
        logger.debug(
            "fanout.subscribed",
            event_name=event,
            token=sub.token,
            once=once,
        )
        return sub.token

    def unsubscribe(self, event: EventName, target: SubscriptionTarget) -> bool:
        """Remove a subscription by token, Subscription, or handler.

        Unknown targets are a no-op, so this is safe to race with a
        one-shot handler that already removed itself. Returns True if a
        subscription was removed.
        """
        sub = self._registry.remove(event, target)
        if sub is None:
            return False
        logger.debug("fanout.unsubscribed", event_name=event, token=sub.token)
        return True

    def remove_all_listeners(self, event: Optional[EventName] = None) -> None:
        """Drop every subscription for `event`, or for all events if omitted."""
        self._registry.clear(event)

    # ─── Introspection ─────────────────────────────────────

    def listener_count(self, event: EventName) -> int:
        """Exact-match subscriptions for `event` (wildcard not included)."""
        return self._registry.count(event)

    def event_names(self) -> list[EventName]:
        return self._registry.names()

    def subscriptions(self, event: EventName) -> tuple[Subscription, ...]:
        return self._registry.subscriptions(event)

    def get_stats(self) -> dict:
        """Return dispatcher statistics for monitoring."""
        return {
            "published": self.stats.published,
            "delivered": self.stats.delivered,
            "failed": self.stats.failed,
            "in_flight": self.stats.in_flight,
            "handler_timeout": self.config.handler_timeout,
            "started_at": (
                self.stats.started_at.isoformat()
                if self.stats.started_at
                else None
            ),
        }

    # ─── Publish ───────────────────────────────────────────

    async def publish(self, event: EventName, *args: Any, **kwargs: Any) -> PublishResult:
        """Fan `event` out to every matching handler and wait for all of them.

        Never raises because of a handler. Each handler's result is
        recorded in the returned PublishResult, in snapshot order.
        """
        snapshot = self._registry.snapshot(event)
        self.stats.published += 1
        if not snapshot:
            return PublishResult(event=event)

        publish_id = uuid.uuid4().hex[:12]
        with structlog.contextvars.bound_contextvars(
            publish_id=publish_id, event_name=event
        ):
            # Tasks start in creation order, so invocation follows the snapshot.
            tasks = [
                asyncio.create_task(self._invoke(event, position, sub, args, kwargs))
                for position, sub in enumerate(snapshot)
            ]
            self.stats.in_flight += len(tasks)
            try:
                outcomes = await asyncio.gather(*tasks)
            finally:
                self.stats.in_flight -= len(tasks)

        result = PublishResult(event=event, outcomes=tuple(outcomes))
        failed = len(result.failures)
        self.stats.delivered += len(result) - failed
        self.stats.failed += failed
        logger.debug(
            "fanout.published",
            event_name=event,
            publish_id=publish_id,
            handlers=len(result),
            failed=failed,
        )
        return result

    async def _invoke(
        self,
        event: EventName,
        position: int,
        sub: Subscription,
        args: tuple,
        kwargs: dict,
    ) -> Outcome:
        """Run one handler and turn whatever happens into an Outcome."""
        try:
            result = sub.handler(*args, **kwargs)
            if inspect.isawaitable(result):
                if self.config.handler_timeout is not None:
                    result = await asyncio.wait_for(result, self.config.handler_timeout)
                else:
                    result = await result
            if isinstance(result, Exception):
                raise result
        except asyncio.CancelledError as exc:
            # Only a cancel aimed at this task (e.g. the publish itself was
            # cancelled) propagates. A handler awaiting someone else's
            # cancelled future is just a failed handler.
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            return self._failure(event, position, sub, exc)
        except Exception as exc:
            return self._failure(event, position, sub, exc)
        return HandlerSuccess(event=event, position=position, token=sub.token)

    def _failure(
        self,
        event: EventName,
        position: int,
        sub: Subscription,
        exc: BaseException,
    ) -> HandlerFailure:
        if self.config.log_handler_failures:
            logger.warning(
                "fanout.handler_failed",
                event_name=event,
                position=position,
                token=sub.token,
                error_type=type(exc).__name__,
                error=str(exc),
            )
        return HandlerFailure(event=event, position=position, token=sub.token, cause=exc)

    def publish_nowait(self, event: EventName, *args: Any, **kwargs: Any) -> asyncio.Task:
        """Schedule a publish on the running loop and return immediately.

        Learn: asyncio only keeps weak references to tasks, so we hold
        each one until it finishes. Await the returned task to get the
        PublishResult.
        """
        task = asyncio.get_running_loop().create_task(
            self.publish(event, *args, **kwargs)
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def wait_for(self, event: EventName, timeout: Optional[float] = None) -> tuple:
        """Wait for the next publish of `event`; return its positional args.

        Raises TimeoutError if nothing is published within `timeout`
        seconds. The one-shot subscription is removed either way.
        """
        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def _resolve(*args: Any, **kwargs: Any) -> None:
            if not future.done():
                future.set_result(args)

        token = self.subscribe_once(event, _resolve)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            self.unsubscribe(event, token)
