"""SDK façade: sequences session, remote calls, event queue and discount cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from core.domain import Discount, InitializeResult, PredictionOutcome, QueuedEvent, utc_now
from core.ports import BillingObserverPort, ReceiptSourcePort, RemoteBackendPort

from . import __version__
from .billing import BillingBridge
from .config import SDKConfig
from .discount import DiscountCoordinator
from .errors import InvalidSDKKey, InvalidUserId, NotInitialized
from .event_queue import EventQueue
from .paywall import BannerParams, PaywallConfig, PaywallParams, build_banner_params, build_paywall_params
from .remote_client import RemoteClient
from .session_state import InitAttempt, SessionPhase, SessionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformOptions:
    use_storekit2: bool = False


@dataclass(frozen=True)
class LogEventOptions:
    event_name: str
    params: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def event(cls, event_name: str, params: dict[str, Any] | None = None) -> "LogEventOptions":
        return cls(event_name=event_name, params=params)


class MonetaiSDK:
    """Explicitly constructed SDK instance.

    All methods must be called from one event loop; that loop is the single
    owner of the session, the event buffer and the discount cache.
    """

    def __init__(
        self,
        *,
        config: SDKConfig | None = None,
        remote: RemoteBackendPort | None = None,
        billing_observer: BillingObserverPort | None = None,
        receipt_source: ReceiptSourcePort | None = None,
    ):
        self.config = config or SDKConfig()
        self.remote = remote if remote is not None else RemoteClient.from_config(self.config)
        self.session = SessionState()
        self.events = EventQueue()
        self.discounts = DiscountCoordinator(remote=self.remote, session=self.session)
        self.billing = BillingBridge(
            remote=self.remote,
            session=self.session,
            bundle_id=self.config.bundle_id,
            observer=billing_observer,
            receipts=receipt_source,
        )

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self.session.initialized

    @property
    def phase(self) -> SessionPhase:
        return self.session.phase

    @property
    def exposure_time_sec(self) -> int | None:
        return self.session.exposure_time_sec

    @property
    def current_discount(self) -> Discount | None:
        return self.discounts.current_discount

    @property
    def user_id(self) -> str | None:
        return self.session.user_id

    @property
    def sdk_key(self) -> str | None:
        return self.session.sdk_key

    def on_discount_change(self, callback: Callable[[Discount | None], None] | None) -> None:
        """Register the discount-change subscriber (replaces any previous one)."""
        self.discounts.changes.subscribe(callback)

    def on_discount_loaded(self, callback: Callable[[None], None] | None) -> None:
        self.discounts.loaded.subscribe(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(
        self,
        sdk_key: str,
        user_id: str,
        options: PlatformOptions | None = None,
    ) -> InitializeResult:
        """Register the integration and assign the test group, once.

        Raises:
            InvalidSDKKey / InvalidUserId: before any network I/O.
            ApiError / NetworkError: from registration or assignment; the
                session stays uninitialized and the call can be retried.
        """
        if not sdk_key:
            raise InvalidSDKKey()
        if not user_id:
            raise InvalidUserId()
        options = options or PlatformOptions()

        async with self.session.init_lock:
            if self.session.initialized:
                logger.debug("initialize() called on a ready session; returning cached result")
                return self.session.cached_result(platform=self.config.platform, version=__version__)

            attempt = self.session.begin_attempt(sdk_key, user_id)
            self.billing.start(use_storekit2=options.use_storekit2)
            self.billing.send_receipt_in_background()

            try:
                integration = await self.remote.register_integration(
                    sdk_key=sdk_key,
                    platform=self.config.platform,
                    version=__version__,
                )
                assignment = await self.remote.assign_test_group(
                    sdk_key=sdk_key,
                    user_id=user_id,
                    platform=self.config.platform,
                )
            except Exception as e:
                logger.warning("Initialization failed: %s", e)
                self.session.fail(attempt)
                raise

            result = InitializeResult(
                organization_id=integration.organization_id,
                platform=integration.platform,
                version=integration.version,
                user_id=user_id,
                group=assignment.group,
            )
            if not self.session.complete(attempt, integration, assignment):
                logger.info("Discarding initialization result for a session that was reset")
                return result

            logger.info("SDK initialization complete; processing pending events")
            await self.events.flush(lambda event: self._send_event(attempt, event))
            if not self.session.is_current(attempt):
                logger.info("Session was reset while flushing pending events; skipping discount load")
                return result
            self.discounts.loaded.publish(None)
            await self.discounts.refresh()
            return result

    def reset(self) -> None:
        """Forget the session. Unflushed queued events are dropped."""
        self.session.reset()
        dropped = self.events.clear()
        if dropped:
            logger.warning("Reset dropped %d pending event(s)", dropped)
        self.discounts.clear()
        self.billing.stop()

    async def aclose(self) -> None:
        """Wait for detached background work (receipt uploads) to finish."""
        await self.billing.wait_background()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def _send_event(self, attempt: InitAttempt, event: QueuedEvent) -> None:
        await self.remote.log_event(
            sdk_key=attempt.sdk_key,
            user_id=attempt.user_id,
            event_name=event.event_name,
            params=event.params,
            created_at=event.created_at,
            platform=self.config.platform,
        )

    async def log_event(
        self,
        event_name: str,
        params: dict[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> None:
        """Log an analytics event. Never raises.

        Before initialization (or while the pending queue is flushing) the
        event is queued; afterwards it is sent immediately and dropped on
        failure.
        """
        event = QueuedEvent(event_name=event_name, params=params, created_at=created_at or utc_now())

        if not self.session.initialized or self.events.flushing:
            self.events.enqueue(event)
            return

        sdk_key, user_id = self.session.sdk_key, self.session.user_id
        try:
            await self.remote.log_event(
                sdk_key=sdk_key,
                user_id=user_id,
                event_name=event.event_name,
                params=event.params,
                created_at=event.created_at,
                platform=self.config.platform,
            )
        except Exception as e:
            logger.warning("Event logging failed for %r: %s", event_name, e)
            return
        logger.debug("Event logged: %s", event_name)

    async def log_event_options(self, options: LogEventOptions) -> None:
        await self.log_event(options.event_name, options.params, options.created_at)

    # ------------------------------------------------------------------
    # Prediction & discounts
    # ------------------------------------------------------------------

    def _require_ready(self) -> tuple[str, str]:
        sdk_key, user_id = self.session.sdk_key, self.session.user_id
        if not self.session.initialized or not sdk_key or not user_id:
            raise NotInitialized()
        return sdk_key, user_id

    async def predict(self) -> PredictionOutcome:
        """Run the purchase prediction for the session user.

        A non-purchaser verdict creates a discount window when none is
        active. Backend errors from the prediction call propagate; errors
        while creating the discount are only logged.
        """
        sdk_key, user_id = self._require_ready()
        if self.session.exposure_time_sec is None:
            raise NotInitialized()

        outcome = await self.remote.predict(sdk_key=sdk_key, user_id=user_id)
        if outcome.is_non_purchaser:
            await self.discounts.on_prediction_non_purchaser()
        return outcome

    async def get_current_discount(self) -> Discount | None:
        """Fetch the latest discount for the session user from the backend."""
        self._require_ready()
        return await self.discounts.fetch_latest()

    async def has_active_discount(self) -> bool:
        discount = await self.get_current_discount()
        return discount is not None and discount.is_active()

    async def refresh_discount(self) -> Discount | None:
        """Reload the cached discount (never raises; see ``DiscountCoordinator.refresh``)."""
        return await self.discounts.refresh()

    def paywall_params(self, config: PaywallConfig) -> PaywallParams | None:
        return build_paywall_params(config, self.current_discount)

    def banner_params(self, config: PaywallConfig) -> BannerParams | None:
        return build_banner_params(config, self.current_discount)

    # ------------------------------------------------------------------
    # Billing
    # ------------------------------------------------------------------

    async def on_transaction_completed(self, transaction_id: str) -> None:
        """Entry point for the billing observer. Never raises."""
        await self.billing.on_transaction_completed(transaction_id)
