#!/usr/bin/env python3
"""
fanout Quickstart — subscribe, publish, once, wildcard, failures.

Run with: python examples/quickstart.py

Requires: pip install -e .
"""

import asyncio

from fanout import WILDCARD, Dispatcher


async def main():
    bus = Dispatcher()

    # ── Regular handlers ──────────────────────────────────────────
    print("1. Subscribing handlers...")
    bus.subscribe("message", lambda msg: print(f"   Handler 1: {msg}"))
    bus.subscribe("message", lambda msg: print(f"   Handler 2: {msg}"))

    # ── One-shot handler ──────────────────────────────────────────
    bus.subscribe_once("message", lambda msg: print(f"   Once only: {msg}"))

    # ── Wildcard handler (sees every event) ──────────────────────
    bus.subscribe(WILDCARD, lambda *args: print(f"   Wildcard saw: {args}"))

    # ── Async handler ─────────────────────────────────────────────
    @bus.on("async")
    async def delayed(data):
        await asyncio.sleep(0.1)
        print(f"   Async handler: {data}")

    # ── Publish ───────────────────────────────────────────────────
    print("\n2. First publish")
    await bus.publish("message", "Hello")

    print("\n3. Second publish (once handler is gone)")
    await bus.publish("message", "World")

    print("\n4. Async publish")
    await bus.publish("async", "Delayed")

    # ── Failures are contained ────────────────────────────────────
    print("\n5. A failing handler")

    def broken(msg):
        raise RuntimeError(f"cannot handle {msg!r}")

    bus.subscribe("message", broken)
    result = await bus.publish("message", "boom")
    print(f"   ok={result.ok}, successes={len(result.successes)}, failures={len(result.failures)}")
    for failure in result.failures:
        print(f"   failed: {failure.to_dict()}")

    # ── Introspection ─────────────────────────────────────────────
    print(f"\nListener count: {bus.listener_count('message')}")
    print(f"Event names: {bus.event_names()}")
    print(f"Stats: {bus.get_stats()}")


if __name__ == "__main__":
    asyncio.run(main())
