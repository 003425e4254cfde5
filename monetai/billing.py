"""Core-side bridge for the platform billing observer.

The observer itself lives outside the SDK core. It is started and stopped
from here and calls ``on_transaction_completed`` for every finished
purchase or restore. Every failure in this pipeline is logged and never
reaches SDK callers.
"""

from __future__ import annotations

import asyncio
import logging

from core.ports import BillingObserverPort, ReceiptSourcePort, RemoteBackendPort

from .errors import BillingError
from .session_state import SessionState

logger = logging.getLogger(__name__)


class BillingBridge:
    def __init__(
        self,
        *,
        remote: RemoteBackendPort,
        session: SessionState,
        bundle_id: str | None,
        observer: BillingObserverPort | None = None,
        receipts: ReceiptSourcePort | None = None,
    ):
        self.remote = remote
        self.session = session
        self.bundle_id = bundle_id
        self.observer = observer
        self.receipts = receipts
        self.observing = False
        self._background: set[asyncio.Task] = set()

    def start(self, *, use_storekit2: bool = False) -> None:
        """Start the transaction observer (idempotent)."""
        if self.observing:
            return
        if self.observer is not None:
            try:
                self.observer.start(use_storekit2=use_storekit2)
            except Exception as e:
                logger.warning("%s", BillingError(e))
                return
        self.observing = True

    def stop(self) -> None:
        if not self.observing:
            return
        if self.observer is not None:
            try:
                self.observer.stop()
            except Exception as e:
                logger.warning("%s", BillingError(e))
        self.observing = False

    def send_receipt_in_background(self) -> asyncio.Task:
        """Schedule a detached receipt upload on the running loop."""
        task = asyncio.get_running_loop().create_task(self.send_receipt())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def wait_background(self) -> None:
        """Wait for detached uploads to finish (used on shutdown and in tests)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _credentials(self, purpose: str) -> tuple[str, str, str] | None:
        sdk_key, user_id = self.session.sdk_key, self.session.user_id
        if not sdk_key or not user_id or not self.bundle_id:
            logger.warning("%s skipped: insufficient SDK initialization information", purpose)
            return None
        return sdk_key, user_id, self.bundle_id

    async def send_receipt(self) -> bool:
        """Upload the current app receipt. Returns True when the upload succeeded."""
        credentials = self._credentials("Receipt upload")
        if credentials is None:
            return False
        sdk_key, user_id, bundle_id = credentials

        if self.receipts is None:
            logger.info("Receipt upload skipped: no receipt source configured")
            return False
        try:
            receipt = self.receipts.read_receipt()
        except Exception as e:
            logger.warning("Receipt read failed: %s", BillingError(e))
            return False
        if not receipt:
            logger.info("Receipt not found")
            return False

        try:
            await self.remote.validate_receipt(
                receipt_data=receipt,
                bundle_id=bundle_id,
                sdk_key=sdk_key,
                user_id=user_id,
            )
        except Exception as e:
            logger.warning("Receipt upload failed: %s", BillingError(e))
            return False
        logger.info("Receipt upload successful: %s...", receipt[:20])
        return True

    async def on_transaction_completed(self, transaction_id: str) -> None:
        """Map ``transaction_id`` to the session user, then upload the receipt."""
        credentials = self._credentials("Transaction processing")
        if credentials is None:
            return
        sdk_key, user_id, bundle_id = credentials

        try:
            await self.remote.map_transaction_to_user(
                transaction_id=transaction_id,
                bundle_id=bundle_id,
                sdk_key=sdk_key,
                user_id=user_id,
            )
            logger.info("Transaction mapping successful: %s", transaction_id)
        except Exception as e:
            logger.warning("Transaction mapping failed: %s", BillingError(e))

        await self.send_receipt()
