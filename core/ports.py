"""Core ports for the remote backend and the billing collaborators."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from .domain import Discount, GroupAssignment, Integration, PredictionOutcome


class RemoteBackendPort(Protocol):
    """Port for the prediction/discount backend."""

    async def register_integration(self, *, sdk_key: str, platform: str, version: str) -> Integration:
        ...

    async def assign_test_group(
        self,
        *,
        sdk_key: str,
        user_id: str,
        platform: str,
    ) -> GroupAssignment:
        ...

    async def log_event(
        self,
        *,
        sdk_key: str,
        user_id: str,
        event_name: str,
        params: dict[str, Any] | None,
        created_at: datetime,
        platform: str = "ios",
    ) -> None:
        ...

    async def predict(self, *, sdk_key: str, user_id: str) -> PredictionOutcome:
        ...

    async def get_latest_discount(self, *, sdk_key: str, user_id: str) -> Discount | None:
        ...

    async def create_discount(
        self,
        *,
        sdk_key: str,
        user_id: str,
        started_at: datetime,
        ended_at: datetime,
    ) -> Discount:
        ...

    async def map_transaction_to_user(
        self,
        *,
        transaction_id: str,
        bundle_id: str,
        sdk_key: str,
        user_id: str,
    ) -> None:
        ...

    async def validate_receipt(
        self,
        *,
        receipt_data: str,
        bundle_id: str,
        sdk_key: str,
        user_id: str,
    ) -> None:
        ...


class BillingObserverPort(Protocol):
    """Port for the platform transaction observer (owned outside the core)."""

    def start(self, *, use_storekit2: bool) -> None:
        ...

    def stop(self) -> None:
        ...


class ReceiptSourcePort(Protocol):
    """Port returning the base64-encoded app receipt, or None when absent."""

    def read_receipt(self) -> str | None:
        ...
