"""Publish outcomes — one tagged result per handler invocation.

Learn: A handler failure never escapes publish(). Instead of swallowing
the error (the usual try/except + log), we record it as a value:

    HandlerSuccess(event, position, token)
    HandlerFailure(event, position, token, cause)

publish() returns a PublishResult holding these in snapshot order.
Callers that don't care ignore it (fire-and-continue). Callers that do
can inspect .failures or escalate with raise_for_failures().
"""

from dataclasses import dataclass
from typing import Iterator, Union

from fanout.events.types import EventName


@dataclass(frozen=True)
class HandlerSuccess:
    """A handler that returned (or whose awaitable completed) normally."""

    event: EventName
    position: int
    token: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class HandlerFailure:
    """A handler that raised, returned an exception, or timed out.

    position is the handler's index in the publish snapshot (exact-match
    subscribers first, then wildcard subscribers).
    """

    event: EventName
    position: int
    token: int
    cause: BaseException

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict:
        """Plain-data view for logging and serialization."""
        return {
            "event": self.event,
            "position": self.position,
            "token": self.token,
            "error_type": type(self.cause).__name__,
            "error": str(self.cause),
        }


Outcome = Union[HandlerSuccess, HandlerFailure]


class PublishError(Exception):
    """Raised by PublishResult.raise_for_failures() when any handler failed."""

    def __init__(self, event: EventName, failures: tuple[HandlerFailure, ...]):
        self.event = event
        self.failures = failures
        positions = ", ".join(str(f.position) for f in failures)
        super().__init__(
            f"{len(failures)} handler(s) failed for event {event!r} "
            f"(positions: {positions})"
        )


@dataclass(frozen=True)
class PublishResult:
    """Aggregated outcome of a single publish() call."""

    event: EventName
    outcomes: tuple[Outcome, ...] = ()

    def __iter__(self) -> Iterator[Outcome]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def successes(self) -> tuple[HandlerSuccess, ...]:
        return tuple(o for o in self.outcomes if isinstance(o, HandlerSuccess))

    @property
    def failures(self) -> tuple[HandlerFailure, ...]:
        return tuple(o for o in self.outcomes if isinstance(o, HandlerFailure))

    def raise_for_failures(self) -> None:
        """Escalate partial failure to the caller.

        The first failure's cause is chained so tracebacks stay useful.
        """
        failures = self.failures
        if failures:
            raise PublishError(self.event, failures) from failures[0].cause
