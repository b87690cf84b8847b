"""Test fixtures — a fresh dispatcher per test and a call recorder.

Learn: Dispatchers are cheap, so every test gets its own instead of
sharing one and clearing it between tests. The config is built
explicitly (not from env vars) so a stray FANOUT_* variable in the
developer's shell can't change test behaviour.
"""

import pytest
import structlog

from fanout.dispatcher import Dispatcher, DispatcherConfig


class Recorder:
    """Collects (name, args) for every handler call, in call order."""

    def __init__(self):
        self.calls: list[tuple[str, tuple]] = []

    def handler(self, name: str):
        def _handle(*args, **kwargs):
            self.calls.append((name, args))
        return _handle

    def async_handler(self, name: str):
        async def _handle(*args, **kwargs):
            self.calls.append((name, args))
        return _handle

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture()
def dispatcher():
    return Dispatcher(DispatcherConfig())


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any structlog.configure() a test (e.g. the CLI) performed."""
    yield
    structlog.reset_defaults()
