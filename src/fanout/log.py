"""Logging setup — structlog with contextvars.

Learn: Library modules only ever call structlog.get_logger() and log
key/value events ("fanout.handler_failed", position=2, ...). They never
configure logging themselves; the application (or our CLI) calls
configure_logging() once at startup.

publish() binds publish_id and event_name to structlog's contextvars.
Handler tasks copy the context when they are created, so anything a
handler logs carries the id of the publish that triggered it.
"""

import sys

import structlog

from fanout.config import LOG_LEVELS


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    """Install the structlog processor chain for the whole process.

    Raises ValueError for a level name outside LOG_LEVELS.
    """
    min_level = LOG_LEVELS.get(level.strip().upper())
    if min_level is None:
        raise ValueError(
            f"Unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}"
        )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
