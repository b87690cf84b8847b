"""Event name constants and handler type aliases.

Learn: Event names are opaque hashable keys. The dispatcher reserves one
value, the wildcard, whose subscribers receive every publish regardless
of the name passed. Centralizing it here keeps every module (and every
caller) agreeing on what "*" means.
"""

from typing import Any, Awaitable, Callable, Hashable, Union

# ─── Reserved names ─────────────────────────────────────

WILDCARD = "*"

# ─── Aliases ────────────────────────────────────────────

EventName = Hashable

# A handler may be a plain function or a coroutine function.
Handler = Callable[..., Union[Any, Awaitable[Any]]]
