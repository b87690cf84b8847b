"""fanout — named-event publish/subscribe for asyncio programs.

Parts of a program register interest in named events; one publish fans
out to every interested handler (plus wildcard handlers), waits for all
of them, and reports each handler's outcome without letting one failure
affect the others.
"""

__version__ = "0.1.0"

from fanout.dispatcher import (  # noqa: E402
    Dispatcher,
    DispatcherConfig,
    DispatcherStats,
    InvalidHandlerError,
    Subscription,
)
from fanout.events.outcomes import (  # noqa: E402
    HandlerFailure,
    HandlerSuccess,
    PublishError,
    PublishResult,
)
from fanout.events.types import WILDCARD  # noqa: E402

__all__ = [
    "WILDCARD",
    "Dispatcher",
    "DispatcherConfig",
    "DispatcherStats",
    "HandlerFailure",
    "HandlerSuccess",
    "InvalidHandlerError",
    "PublishError",
    "PublishResult",
    "Subscription",
    "__version__",
]
