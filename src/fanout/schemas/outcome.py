"""Pydantic schemas for publish outcomes.

Learn: Event names are arbitrary hashables and failure causes are live
exception objects. Neither serializes cleanly, so these read models
flatten a PublishResult into strings and ints for logs, JSON output
and anything else that wants plain data.
"""

from typing import Optional

from pydantic import BaseModel

from fanout.events.outcomes import HandlerFailure, Outcome, PublishResult


class OutcomeRead(BaseModel):
    position: int
    token: int
    ok: bool
    error_type: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> "OutcomeRead":
        if isinstance(outcome, HandlerFailure):
            return cls(
                position=outcome.position,
                token=outcome.token,
                ok=False,
                error_type=type(outcome.cause).__name__,
                error=str(outcome.cause),
            )
        return cls(position=outcome.position, token=outcome.token, ok=True)


class PublishSummary(BaseModel):
    event: str
    handlers: int
    delivered: int
    failed: int
    outcomes: list[OutcomeRead]

    @classmethod
    def from_result(cls, result: PublishResult) -> "PublishSummary":
        failed = len(result.failures)
        return cls(
            event=str(result.event),
            handlers=len(result),
            delivered=len(result) - failed,
            failed=failed,
            outcomes=[OutcomeRead.from_outcome(o) for o in result],
        )
