"""fanout CLI — try the dispatcher from a terminal.

Usage:
    fanout demo                 # A, B, once C and wildcard D on "msg"
    fanout demo --fail          # same, plus a handler that raises
    fanout demo --json          # publish summaries as JSON
    fanout config               # effective FANOUT_* settings
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json

import click

from fanout import __version__
from fanout.config import settings
from fanout.dispatcher import Dispatcher, DispatcherConfig
from fanout.events.types import WILDCARD
from fanout.log import configure_logging
from fanout.schemas.outcome import PublishSummary

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Drive a demo coroutine from a synchronous click command.

    asyncio.run() refuses to start inside a running loop (a notebook, or
    an async program calling main() directly), so in that case the demo
    gets its own loop on a worker thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # Plain `fanout ...` from a shell
        return asyncio.run(coro)
    else:
        # Caller already owns a loop on this thread
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_summary(summary: PublishSummary):
    color = "green" if summary.failed == 0 else "yellow"
    click.secho(
        f"  → {summary.handlers} handler(s), "
        f"{summary.delivered} ok, {summary.failed} failed",
        fg=color,
    )
    for outcome in summary.outcomes:
        if not outcome.ok:
            click.secho(
                f"    #{outcome.position} {outcome.error_type}: {outcome.error}",
                fg="red",
            )


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="fanout")
def main():
    """fanout — named-event publish/subscribe dispatcher."""
    try:
        configure_logging(settings.log_level, json=settings.log_json)
    except ValueError as e:
        raise click.ClickException(str(e)) from e


# ---------------------------------------------------------------------------
# fanout demo
# ---------------------------------------------------------------------------


@main.command()
@click.option("--fail", is_flag=True, help="Add a handler that raises")
@click.option("--json", "as_json", is_flag=True, help="Print summaries as JSON")
def demo(fail: bool, as_json: bool):
    """Publish a few events and show who received them.

    Subscribes A and B to "msg", C once to "msg", D to the wildcard and
    an async handler to "async", then publishes "msg" twice and "async"
    once.
    """
    _run(_demo_impl(fail, as_json))


async def _demo_impl(fail: bool, as_json: bool):
    config = DispatcherConfig.from_settings(settings)
    # Failures are already in the JSON; keep stdout parseable
    config.log_handler_failures = not as_json
    bus = Dispatcher(config)

    def say(line: str):
        if not as_json:
            click.echo(f"  {line}")

    def handler(name: str):
        def _handle(msg):
            say(f"{name}: {msg}")
        _handle.__name__ = f"handler_{name}"
        return _handle

    def broken(msg):
        raise RuntimeError(f"cannot handle {msg!r}")

    async def delayed(data):
        await asyncio.sleep(0.1)
        say(f"async: {data}")

    bus.subscribe("msg", handler("A"))
    bus.subscribe("msg", handler("B"))
    bus.subscribe_once("msg", handler("C (once)"))
    if fail:
        bus.subscribe("msg", broken)
    bus.subscribe(WILDCARD, handler("D (wildcard)"))
    bus.subscribe("async", delayed)

    summaries = []
    for event, payload in (("msg", "hi"), ("msg", "bye"), ("async", "delayed")):
        if not as_json:
            click.secho(f"=== publish {event!r} ({payload!r}) ===", bold=True)
        result = await bus.publish(event, payload)
        summary = PublishSummary.from_result(result)
        summaries.append(summary)
        if not as_json:
            _print_summary(summary)

    if as_json:
        click.echo(_pretty_json({
            "publishes": [s.model_dump() for s in summaries],
            "listener_count": {name: bus.listener_count(name) for name in bus.event_names()},
            "event_names": bus.event_names(),
        }))
        return

    click.echo()
    click.echo(f"Listener count (msg): {bus.listener_count('msg')}")
    click.echo(f"Event names: {', '.join(map(str, bus.event_names()))}")


# ---------------------------------------------------------------------------
# fanout config
# ---------------------------------------------------------------------------


@main.command("config")
def show_config():
    """Show the effective FANOUT_* settings."""
    click.echo(_pretty_json(settings.model_dump()))


if __name__ == "__main__":
    main()
