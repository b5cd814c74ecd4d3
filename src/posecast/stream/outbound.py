"""
Outbound Queue
==============

Per-session bounded queue with a single consumer that writes to the socket.

The capture loop submits serialized envelopes without waiting; one consumer
task drains the queue and awaits each send before starting the next, so the
wire order equals the submission order (color before depth within a cycle).

Design Rules:
    - Fixed maximum size (drops oldest on overflow)
    - submit() never blocks the tick
    - Undeliverable envelopes are dropped, never retried
    - Exposes minimal metrics for observability
"""

import asyncio
import logging
from typing import Awaitable, Optional, Protocol


logger = logging.getLogger(__name__)


class TextSender(Protocol):
    """Anything that can await a text send (normally the connection adapter)."""

    def send_text_async(self, text: str) -> Awaitable[None]:
        ...


class OutboundQueue:
    """
    Async bounded queue of serialized envelopes.

    Attributes:
        maxsize: Maximum number of queued envelopes
        dropped_count: Envelopes dropped due to overflow
        failed_count: Envelopes dropped because the send failed

    Example:
        queue = OutboundQueue(maxsize=8)
        task = asyncio.create_task(queue.run(connection))

        # Producer (capture loop)
        queue.submit(envelope.to_wire())
    """

    def __init__(self, maxsize: int = 8) -> None:
        """
        Initialize outbound queue.

        Args:
            maxsize: Maximum envelopes to hold. Must be >= 1.
        """
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")

        self._maxsize = maxsize
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)
        self._running: bool = False
        self._idle: bool = False
        self._consumer: Optional[asyncio.Task] = None
        self._dropped_count: int = 0
        self._failed_count: int = 0
        self._sent_count: int = 0
        self._total_submitted: int = 0

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def size(self) -> int:
        """Current number of queued envelopes."""
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped_count

    @property
    def failed_count(self) -> int:
        return self._failed_count

    @property
    def sent_count(self) -> int:
        return self._sent_count

    def submit(self, text: str) -> bool:
        """
        Queue an envelope for sending, dropping the oldest if full.

        Args:
            text: Serialized envelope

        Returns:
            True if queued without dropping, False if the oldest was dropped.
        """
        self._total_submitted += 1
        dropped = False

        if self._queue.full():
            try:
                self._queue.get_nowait()
                self._queue.task_done()
                self._dropped_count += 1
                dropped = True
                logger.warning(
                    f"Outbound queue full, dropped oldest envelope. "
                    f"Total dropped: {self._dropped_count}"
                )
            except asyncio.QueueEmpty:
                pass

        self._queue.put_nowait(text)
        return not dropped

    async def run(self, sender: TextSender) -> None:
        """
        Drain the queue in FIFO order until stopped.

        Args:
            sender: Connection used to write each envelope
        """
        self._running = True
        self._consumer = asyncio.current_task()
        logger.info("Outbound queue consumer started")

        try:
            while self._running:
                self._idle = True
                try:
                    text = await self._queue.get()
                finally:
                    self._idle = False
                try:
                    await sender.send_text_async(text)
                    self._sent_count += 1
                except ConnectionError as e:
                    self._failed_count += 1
                    logger.debug(f"Envelope dropped, not connected: {e}")
                except Exception as e:
                    self._failed_count += 1
                    logger.warning(f"Envelope send failed: {e}")
                finally:
                    self._queue.task_done()
        except asyncio.CancelledError:
            # stop() wakes an idle consumer by cancelling it; anything else propagates
            if self._running:
                logger.info("Outbound queue consumer cancelled")
                raise
        finally:
            self._running = False
            self._idle = False
            self._consumer = None

        logger.info("Outbound queue consumer stopped")

    def stop(self) -> None:
        """
        Stop the consumer.

        An idle consumer returns immediately; one awaiting a send returns
        after that envelope is handled.
        """
        self._running = False
        consumer = self._consumer
        if consumer is not None and self._idle and not consumer.done():
            consumer.cancel()

    async def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every queued envelope has been handled.

        Returns:
            True if drained, False on timeout.
        """
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def clear(self) -> int:
        """
        Discard all queued envelopes.

        Returns:
            Number of envelopes discarded.
        """
        cleared = 0
        while True:
            try:
                self._queue.get_nowait()
                self._queue.task_done()
                cleared += 1
            except asyncio.QueueEmpty:
                break
        return cleared

    def metrics(self) -> dict:
        """
        Get queue metrics for observability.

        Returns:
            Dict with size, maxsize, sent, dropped, failed, total_submitted
        """
        return {
            "size": self.size,
            "maxsize": self._maxsize,
            "sent": self._sent_count,
            "dropped": self._dropped_count,
            "failed": self._failed_count,
            "total_submitted": self._total_submitted,
        }
