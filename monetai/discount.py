"""Discount window cache and conditional discount creation."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from core.domain import Discount, ensure_utc, utc_now
from core.ports import RemoteBackendPort

from .observable import SingleSlotSubject
from .session_state import SessionState

logger = logging.getLogger(__name__)


class DiscountCoordinator:
    """Owns the cached discount for the current session user.

    Concurrent ``refresh`` calls are not sequenced: whichever completes last
    sets the cache. Results that arrive after a ``reset`` are discarded.
    """

    def __init__(self, *, remote: RemoteBackendPort, session: SessionState):
        self.remote = remote
        self.session = session
        self._cached: Discount | None = None
        self.changes: SingleSlotSubject[Discount | None] = SingleSlotSubject("discount-change")
        self.loaded: SingleSlotSubject[None] = SingleSlotSubject("discount-loaded")

    @property
    def current_discount(self) -> Discount | None:
        discount = self._cached
        if discount is None or not discount.belongs_to(self.session.user_id):
            return None
        return discount

    def has_active_discount(self, now: datetime | None = None) -> bool:
        discount = self.current_discount
        return discount is not None and discount.is_active(now)

    def clear(self) -> None:
        self._cached = None

    def _scoped(self, discount: Discount | None, user_id: str) -> Discount | None:
        if discount is not None and not discount.belongs_to(user_id):
            logger.warning(
                "Ignoring discount for app user %r; session user is %r",
                discount.app_user_id,
                user_id,
            )
            return None
        return discount

    async def fetch_latest(self) -> Discount | None:
        """Fetch the latest discount for the session user without touching the cache.

        Errors from the backend propagate.
        """
        sdk_key, user_id = self.session.sdk_key, self.session.user_id
        if not sdk_key or not user_id:
            return None
        discount = await self.remote.get_latest_discount(sdk_key=sdk_key, user_id=user_id)
        return self._scoped(discount, user_id)

    def _publish(self, discount: Discount | None) -> None:
        self._cached = discount
        self.changes.publish(discount)

    async def refresh(self) -> Discount | None:
        """Reload the cached discount from the backend and notify the subscriber.

        The subscriber is notified even when the value did not change. A
        failed fetch clears the cache and notifies with None.
        """
        sdk_key, user_id = self.session.sdk_key, self.session.user_id
        if not sdk_key or not user_id:
            logger.debug("Discount refresh skipped: no session credentials")
            return None

        generation = self.session.generation
        try:
            discount = await self.remote.get_latest_discount(sdk_key=sdk_key, user_id=user_id)
        except Exception as e:
            if generation != self.session.generation:
                return None
            logger.warning("Discount refresh failed: %s", e)
            self._publish(None)
            return None

        if generation != self.session.generation or user_id != self.session.user_id:
            logger.debug("Discarding discount refresh for a previous session")
            return None

        discount = self._scoped(discount, user_id)
        self._publish(discount)
        logger.info("Discount refresh complete: %s", "discount available" if discount else "no discount")
        return discount

    async def on_prediction_non_purchaser(self, now: datetime | None = None) -> Discount | None:
        """Create a discount window unless an active one already exists.

        Returns the refreshed discount when one was created, otherwise None.
        Failures are logged, never raised.
        """
        sdk_key, user_id = self.session.sdk_key, self.session.user_id
        exposure_time_sec = self.session.exposure_time_sec
        if not sdk_key or not user_id or exposure_time_sec is None:
            logger.warning("Discount creation skipped: session is not ready")
            return None

        generation = self.session.generation
        try:
            existing = await self.fetch_latest()
            current = ensure_utc(now) if now is not None else utc_now()
            if existing is not None and existing.is_active(current):
                logger.info("Active discount already exists until %s", existing.ended_at.isoformat())
                return None

            if generation != self.session.generation:
                return None

            ended_at = current + timedelta(seconds=exposure_time_sec)
            await self.remote.create_discount(
                sdk_key=sdk_key,
                user_id=user_id,
                started_at=current,
                ended_at=ended_at,
            )
        except Exception as e:
            logger.warning("Discount creation failed: %s", e)
            return None

        self.loaded.publish(None)
        return await self.refresh()
