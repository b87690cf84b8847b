#!/usr/bin/env python3
"""
Order pipeline — decoupled stages talking only through event names.

  order.placed → inventory + billing (concurrently)
  billing      → publishes payment.captured
  shipping     → waits for payment.captured before it ships

Shows wait_for(), publish_nowait(), an audit log on the wildcard and
opt-in escalation with raise_for_failures().

Run with: python examples/order_pipeline.py
"""

import asyncio

from fanout import WILDCARD, Dispatcher, DispatcherConfig, PublishError
from fanout.log import configure_logging


async def main():
    configure_logging("INFO")
    bus = Dispatcher(DispatcherConfig(handler_timeout=2.0))
    audit: list[str] = []

    @bus.on(WILDCARD)
    def record(*args, **kwargs):
        audit.append(f"{args} {kwargs}")

    @bus.on("order.placed")
    async def reserve_stock(order_id, items):
        await asyncio.sleep(0.05)
        print(f"   inventory: reserved {len(items)} item(s) for order {order_id}")

    @bus.on("order.placed")
    async def charge(order_id, items):
        await asyncio.sleep(0.1)
        print(f"   billing: charged order {order_id}")
        bus.publish_nowait("payment.captured", order_id)

    print("1. Shipping waits for payment...")
    shipping = asyncio.create_task(bus.wait_for("payment.captured", timeout=5))
    await asyncio.sleep(0)

    print("\n2. Placing order 42")
    result = await bus.publish("order.placed", 42, items=["book", "lamp"])
    result.raise_for_failures()

    (order_id,) = await shipping
    print(f"\n3. shipping: order {order_id} is on its way")

    print("\n4. A stage that rejects the order")

    @bus.on("order.placed", once=True)
    def fraud_check(order_id, items):
        raise ValueError(f"order {order_id} flagged for review")

    result = await bus.publish("order.placed", 43, items=["yacht"])
    try:
        result.raise_for_failures()
    except PublishError as e:
        print(f"   escalated: {e}")

    await asyncio.sleep(0.2)
    print(f"\nAudit trail ({len(audit)} events):")
    for line in audit:
        print(f"   {line}")


if __name__ == "__main__":
    asyncio.run(main())
