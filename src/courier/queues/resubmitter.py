"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Background loop that re-offers failed messages to a dispatcher.
"""

from __future__ import annotations

import asyncio
import logging

from ..clock import Clock, SystemClock
from ..runtime.contracts import ResubmitPolicy
from ..runtime.dispatcher import Dispatcher
from ..types import Message
from .metrics import NoOpResubmitterMetrics, ResubmitterMetrics

logger = logging.getLogger("courier.resubmitter")


class Resubmitter:
    """
    Periodically re-dispatch messages that previously failed.

    Each tick swaps the pending list for an empty one, dispatches the batch in
    order and pushes failures back for the next tick. Stopping prevents future
    ticks but lets a tick that is already running finish.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        *,
        policy: ResubmitPolicy | None = None,
        clock: Clock | None = None,
        metrics: ResubmitterMetrics | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._policy = policy or ResubmitPolicy()
        self._clock = clock or SystemClock()
        self._metrics: ResubmitterMetrics = metrics or NoOpResubmitterMetrics()
        self._pending: list[Message] = []
        self._rounds: dict[str, int] = {}
        self._dead_letters: list[Message] = []
        self._task: asyncio.Task[None] | None = None
        self._draining: asyncio.Task[None] | None = None
        self._token: object | None = None
        self._ticking = False

    @property
    def is_running(self) -> bool:
        return self._token is not None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pending(self) -> list[Message]:
        return list(self._pending)

    @property
    def dead_letters(self) -> list[Message]:
        """Messages dropped after `max_rounds` failed ticks."""
        return list(self._dead_letters)

    def enqueue(self, message: Message) -> None:
        logger.warning("Queuing message %s for retry later.", message.id)
        self._pending.append(message)

    async def start(self) -> None:
        """Start the background timer; a no-op when already running."""
        if self._token is not None:
            return
        token = object()
        self._token = token
        self._task = asyncio.create_task(self._loop(token))
        logger.info("Resubmitter started (interval=%.1fs)", self._policy.interval_s)

    async def stop(self) -> None:
        """Cancel future ticks; safe to call when not running."""
        if self._token is None:
            return
        self._token = None
        task, self._task = self._task, None
        if task is not None and not task.done():
            if self._ticking:
                # The running tick finishes on its own; hold the task until then.
                self._draining = task
                task.add_done_callback(self._drained)
            else:
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        logger.info("Resubmitter stopped.")

    def _drained(self, task: asyncio.Task[None]) -> None:
        if self._draining is task:
            self._draining = None
        if not task.cancelled() and task.exception() is not None:
            logger.error("Resubmitter loop ended with an error", exc_info=task.exception())

    async def _loop(self, token: object) -> None:
        while self._token is token:
            await self._clock.sleep(self._policy.interval_s)
            if self._token is not token:
                break
            try:
                await self.run_once()
            except Exception:  # noqa: BLE001
                logger.exception("Resubmitter tick failed")

    async def run_once(self) -> int:
        """Process one batch and return how many messages were re-queued."""
        if not self._pending:
            return 0

        self._ticking = True
        batch, self._pending = self._pending, []
        done = 0
        try:
            self._metrics.incr("resubmitter_ticks_total")
            logger.info("Processing queue with %d pending messages...", len(batch))

            requeued = 0
            for message in batch:
                self._metrics.incr("resubmitter_redispatched_total")
                outcome = await self._dispatcher.dispatch(message)
                done += 1
                if outcome.success:
                    self._rounds.pop(message.id, None)
                    self._metrics.incr("resubmitter_delivered_total")
                    logger.info("Message %s sent successfully from queue.", message.id)
                    continue

                rounds = self._rounds.get(message.id, 0) + 1
                max_rounds = self._policy.max_rounds
                if max_rounds is not None and rounds >= max_rounds:
                    self._rounds.pop(message.id, None)
                    self._dead_letters.append(message)
                    self._metrics.incr("resubmitter_dead_lettered_total")
                    logger.error(
                        "Message %s failed %d re-submission rounds; moved to dead letters.",
                        message.id,
                        rounds,
                    )
                    continue

                self._rounds[message.id] = rounds
                self._pending.append(message)
                requeued += 1
                self._metrics.incr("resubmitter_requeued_total")
                logger.warning("Retry failed again for %s. Re-queuing.", message.id)
            return requeued
        except BaseException:
            # Unprocessed messages, including the one that raised, go back first.
            self._pending[:0] = batch[done:]
            raise
        finally:
            self._ticking = False
