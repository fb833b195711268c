"""Fraud screening runs first and cancels suspicious orders."""

import asyncio

LIMIT = 5_000.0


def register(hooks):
    async def screen(order, advance, name):
        # Stand-in for a remote risk check
        await asyncio.sleep(0.01)
        if order["subtotal"] > LIMIT:
            hooks.emit("order.rejected", {**order, "reason": "over fraud limit"})
            return
        advance(order)

    hooks.inject("order.submitted", "fraud", screen, {"order": "pre"})
