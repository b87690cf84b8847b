"""Library configuration via environment variables.

Uses pydantic-settings to load config from env vars with FANOUT_ prefix.
No config files — just env vars (12-factor style).

Learn: These are defaults. Every Dispatcher can override them through
its own DispatcherConfig; Dispatcher() with no arguments builds one
from this module's `settings` singleton.
"""

import logging
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class Settings(BaseSettings):
    """All library configuration. Set via FANOUT_* env vars."""

    # Dispatch
    wildcard: str = "*"
    handler_timeout_seconds: Optional[float] = None  # None = wait forever

    # Logging
    log_handler_failures: bool = True
    log_level: str = "INFO"
    log_json: bool = False

    model_config = {"env_prefix": "FANOUT_"}

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"FANOUT_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {v!r}"
            )
        return level

    @model_validator(mode="after")
    def validate_timeout(self):
        """A per-handler timeout must be positive when set."""
        if self.handler_timeout_seconds is not None and self.handler_timeout_seconds <= 0:
            raise ValueError(
                "FANOUT_HANDLER_TIMEOUT_SECONDS must be a positive number of "
                "seconds (leave it unset to disable the timeout)"
            )
        return self


# Singleton — import this everywhere
settings = Settings()
