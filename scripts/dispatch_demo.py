#!/usr/bin/env python3
"""
Dispatch demo: send a few messages through the simulated providers and let the
resubmitter retry whatever failed.

Usage examples:
  PYTHONPATH=src python scripts/dispatch_demo.py
  PYTHONPATH=src python scripts/dispatch_demo.py --seed 7 --run-for 12
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random

from courier import (
    Message,
    SimulatedBackend,
    create_dispatcher_from_env,
    create_resubmitter_from_env,
)

MESSAGES = [
    Message(
        id="email-001",
        to="user1@example.com",
        subject="Welcome!",
        body="Thanks for joining our platform!",
    ),
    Message(
        id="email-002",
        to="user2@example.com",
        subject="Reminder",
        body="Don't forget to verify your email.",
    ),
    Message(
        id="email-003",
        to="user3@example.com",
        subject="Discount Inside!",
        body="Here's your 20% off coupon.",
    ),
]


async def run_demo(*, seed: int | None, run_for_s: float) -> None:
    rng = random.Random(seed)
    dispatcher = create_dispatcher_from_env(
        [SimulatedBackend.provider_a(rng=rng), SimulatedBackend.provider_b(rng=rng)]
    )
    resubmitter = create_resubmitter_from_env(dispatcher)
    await resubmitter.start()

    for message in MESSAGES:
        outcome = await dispatcher.dispatch(message)
        if not outcome.success:
            resubmitter.enqueue(message)

    await asyncio.sleep(run_for_s)
    await resubmitter.stop()

    for message in MESSAGES:
        record = dispatcher.get_status(message.id)
        print(message.id, record.as_dict() if record else None)


def main() -> None:
    parser = argparse.ArgumentParser(description="courier dispatch demo")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--run-for", type=float, default=6.0, help="Seconds to keep the resubmitter alive")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(run_demo(seed=args.seed, run_for_s=args.run_for))


if __name__ == "__main__":
    main()
