"""Framework-free change notification."""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleSlotSubject(Generic[T]):
    """Holds at most one subscriber; the last registration wins.

    Delivery is synchronous on the caller's thread/loop. A subscriber that
    raises is logged and never affects the publisher.
    """

    def __init__(self, name: str):
        self.name = name
        self._callback: Callable[[T], None] | None = None

    @property
    def has_subscriber(self) -> bool:
        return self._callback is not None

    def subscribe(self, callback: Callable[[T], None] | None) -> None:
        """Register ``callback`` (replacing any previous one); None unsubscribes."""
        self._callback = callback

    def unsubscribe(self) -> None:
        self._callback = None

    def publish(self, value: T) -> None:
        callback = self._callback
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            logger.exception("Subscriber of %s raised; ignoring", self.name)
