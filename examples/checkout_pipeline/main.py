#!/usr/bin/env python3
"""
Checkout Pipeline - hookstack Demo Application

Plugins register interceptors on "order.submitted" without knowing about each
other; hookstack works out the order they run in.

Run modes:
  python main.py                 # Demo with sample orders
  python main.py --count 50      # Random orders
  python main.py --validate      # Only check plugin ordering
"""

import argparse
import asyncio
import logging
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from plugins import audit, discounts, fraud, tax

from hookstack import HookError, Hooks

logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stderr)


def create_sample_orders() -> list[dict]:
    return [
        {"id": 1, "customer": "alice", "country": "DE", "subtotal": 120.0, "coupon": "WELCOME10"},
        {"id": 2, "customer": "bob", "country": "US", "subtotal": 40.0},
        {"id": 3, "customer": "mallory", "country": "US", "subtotal": 9_999.0},
        {"id": 4, "customer": "carol", "country": "FR", "subtotal": 75.5, "coupon": "BOGUS"},
    ]


def create_random_orders(count: int) -> list[dict]:
    customers = ["alice", "bob", "carol", "dave", "mallory"]
    countries = ["DE", "FR", "US", "GB"]
    return [
        {
            "id": i + 1,
            "customer": random.choice(customers),
            "country": random.choice(countries),
            "subtotal": round(random.uniform(5, 12_000), 2),
            "coupon": random.choice([None, "WELCOME10", "BOGUS"]),
        }
        for i in range(count)
    ]


def build_hooks() -> Hooks:
    hooks = Hooks()
    # Registration order is deliberately scrambled
    tax.register(hooks)
    audit.register(hooks)
    discounts.register(hooks)
    fraud.register(hooks)
    return hooks


async def run(orders: list[dict]) -> None:
    hooks = build_hooks()
    accepted: list[dict] = []
    rejected: list[dict] = []

    hooks.on("order.accepted", lambda order, name: accepted.append(order))
    hooks.on("order.rejected", lambda order, name: rejected.append(order))

    for order in orders:
        hooks.emit("order.submitted", order)
    await hooks.drain()

    print(f"\nAccepted {len(accepted)} orders, rejected {len(rejected)}")
    for order in accepted:
        print(f"  #{order['id']:>3} {order['customer']:<8} total={order['total']:>10.2f}")
    for order in rejected:
        print(f"  #{order['id']:>3} {order['customer']:<8} REJECTED ({order['reason']})")

    stats = hooks.get_stats()
    print(f"\nEvents emitted: {stats.events_emitted}, chains resolved: {stats.resolutions}")


def main() -> int:
    parser = argparse.ArgumentParser(description="hookstack checkout demo")
    parser.add_argument("--count", type=int, help="Generate N random orders")
    parser.add_argument("--validate", action="store_true", help="Check plugin ordering and exit")
    args = parser.parse_args()

    if args.validate:
        try:
            build_hooks().validate()
        except HookError as e:
            print(f"Plugin ordering is invalid: {e}")
            return 1
        print("Plugin ordering is valid")
        return 0

    orders = create_random_orders(args.count) if args.count else create_sample_orders()
    asyncio.run(run(orders))
    return 0


if __name__ == "__main__":
    sys.exit(main())
