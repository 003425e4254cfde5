"""Pre-initialization event buffer with ordered, drain-once flushing."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from core.domain import QueuedEvent

logger = logging.getLogger(__name__)

SendEvent = Callable[[QueuedEvent], Awaitable[None]]


class EventQueue:
    """FIFO buffer of events logged before the SDK is ready.

    The buffer is unbounded. ``flush`` swaps the buffer out before sending,
    so events enqueued while a flush is running land in a fresh buffer that
    the same flush drains afterwards.
    """

    def __init__(self):
        self._pending: list[QueuedEvent] = []
        self._flushing = False
        self._epoch = 0

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def flushing(self) -> bool:
        return self._flushing

    def pending_names(self) -> list[str]:
        return [event.event_name for event in self._pending]

    def enqueue(self, event: QueuedEvent) -> None:
        self._pending.append(event)
        logger.debug(
            "Queued event %r before initialization (%d pending)",
            event.event_name,
            len(self._pending),
        )

    def clear(self) -> int:
        """Drop every pending event and return how many were dropped.

        A flush running at the time stops before its next send.
        """
        dropped = len(self._pending)
        self._pending = []
        self._flushing = False
        self._epoch += 1
        return dropped

    async def flush(self, send: SendEvent) -> int:
        """Send pending events one at a time in insertion order.

        Per-event failures are logged and skipped; nothing is re-queued.
        If ``clear`` runs mid-flush, the rest of the captured events are
        dropped. Returns the number of events delivered successfully.
        """
        if self._flushing:
            return 0

        epoch = self._epoch
        delivered = 0
        self._flushing = True
        try:
            while self._pending and epoch == self._epoch:
                batch, self._pending = self._pending, []
                logger.info("Flushing %d pending event(s)", len(batch))
                for index, event in enumerate(batch, start=1):
                    if epoch != self._epoch:
                        logger.info("Flush interrupted by reset; dropping %d event(s)", len(batch) - index + 1)
                        return delivered
                    try:
                        await send(event)
                    except Exception as e:
                        logger.warning(
                            "Pending event %d/%d %r failed: %s",
                            index,
                            len(batch),
                            event.event_name,
                            e,
                        )
                        continue
                    delivered += 1
        finally:
            if epoch == self._epoch:
                self._flushing = False
        return delivered
