"""
Shared fixtures for monetai-sdk tests.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from core.domain import (
    ABTestGroup,
    Campaign,
    Discount,
    GroupAssignment,
    Integration,
    Prediction,
    PredictionOutcome,
)
from monetai.config import SDKConfig
from monetai.facade import MonetaiSDK


class FakeRemote:
    """In-memory backend recording every call.

    - ``failures[name]``       → exception raised by operation ``name``
    - ``failing_events``       → event names whose ``log_event`` fails
    - ``gates[name]``          → ``asyncio.Event`` the operation waits on first
    - ``discounts[user_id]``   → latest discount served per app user
    """

    def __init__(self, exposure_time_sec: int | None = 3600):
        self.calls: list[tuple[str, dict]] = []
        self.integration = Integration(organization_id=42, platform="ios", version="1.0.0")
        campaign = None
        if exposure_time_sec is not None:
            campaign = Campaign(
                id=7,
                organization_id=42,
                campaign_name="spring-sale",
                exposure_time_sec=exposure_time_sec,
            )
        self.assignment = GroupAssignment(group=ABTestGroup.MONETAI, campaign=campaign)
        self.prediction = PredictionOutcome(prediction=Prediction.PURCHASER, test_group=ABTestGroup.MONETAI)
        self.discounts: dict[str, Discount] = {}
        self.failures: dict[str, Exception] = {}
        self.failing_events: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.sent_events: list[str] = []

    def count(self, name: str) -> int:
        return sum(1 for call_name, _ in self.calls if call_name == name)

    def kwargs_of(self, name: str) -> list[dict]:
        return [kwargs for call_name, kwargs in self.calls if call_name == name]

    async def _enter(self, name: str, **kwargs):
        self.calls.append((name, kwargs))
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        exc = self.failures.get(name)
        if exc is not None:
            raise exc

    async def register_integration(self, *, sdk_key, platform, version):
        await self._enter("register_integration", sdk_key=sdk_key, platform=platform, version=version)
        return self.integration

    async def assign_test_group(self, *, sdk_key, user_id, platform):
        await self._enter("assign_test_group", sdk_key=sdk_key, user_id=user_id, platform=platform)
        return self.assignment

    async def log_event(self, *, sdk_key, user_id, event_name, params, created_at, platform="ios"):
        await self._enter(
            "log_event",
            sdk_key=sdk_key,
            user_id=user_id,
            event_name=event_name,
            params=params,
            created_at=created_at,
        )
        if event_name in self.failing_events:
            raise ConnectionError(f"collector rejected {event_name}")
        self.sent_events.append(event_name)

    async def predict(self, *, sdk_key, user_id):
        await self._enter("predict", sdk_key=sdk_key, user_id=user_id)
        return self.prediction

    async def get_latest_discount(self, *, sdk_key, user_id):
        await self._enter("get_latest_discount", sdk_key=sdk_key, user_id=user_id)
        return self.discounts.get(user_id)

    async def create_discount(self, *, sdk_key, user_id, started_at, ended_at):
        await self._enter(
            "create_discount",
            sdk_key=sdk_key,
            user_id=user_id,
            started_at=started_at,
            ended_at=ended_at,
        )
        discount = Discount(started_at=started_at, ended_at=ended_at, app_user_id=user_id, sdk_key=sdk_key)
        self.discounts[user_id] = discount
        return discount

    async def map_transaction_to_user(self, *, transaction_id, bundle_id, sdk_key, user_id):
        await self._enter(
            "map_transaction_to_user",
            transaction_id=transaction_id,
            bundle_id=bundle_id,
            sdk_key=sdk_key,
            user_id=user_id,
        )

    async def validate_receipt(self, *, receipt_data, bundle_id, sdk_key, user_id):
        await self._enter(
            "validate_receipt",
            receipt_data=receipt_data,
            bundle_id=bundle_id,
            sdk_key=sdk_key,
            user_id=user_id,
        )


class FakeObserver:
    def __init__(self):
        self.started: list[bool] = []
        self.stopped = 0

    def start(self, *, use_storekit2: bool) -> None:
        self.started.append(use_storekit2)

    def stop(self) -> None:
        self.stopped += 1


class FakeReceipts:
    def __init__(self, receipt: str | None = "TUlJRXJ3WUpLb1pJaHZjTkFRY0NvSUlFb0RDQ0JKd0NBUUV4"):
        self.receipt = receipt

    def read_receipt(self) -> str | None:
        return self.receipt


@pytest.fixture
def now():
    return datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_discount(now):
    """Build a Discount relative to the ``now`` fixture.

    Usage:
        make_discount("u1", seconds=3600)            # active for an hour
        make_discount("u1", seconds=60, offset=-120) # already expired
    """
    def _make(user_id: str = "u1", *, seconds: int = 3600, offset: int = 0, sdk_key: str = "k1"):
        started = now + timedelta(seconds=offset)
        return Discount(
            started_at=started,
            ended_at=started + timedelta(seconds=seconds),
            app_user_id=user_id,
            sdk_key=sdk_key,
        )
    return _make


@pytest.fixture
def fake_remote():
    return FakeRemote()


@pytest.fixture
def fake_observer():
    return FakeObserver()


@pytest.fixture
def fake_receipts():
    return FakeReceipts()


@pytest.fixture
def sdk(fake_remote, fake_observer, fake_receipts):
    """A fresh SDK instance wired to in-memory collaborators."""
    return MonetaiSDK(
        config=SDKConfig(base_url="http://backend.local/sdk", bundle_id="com.example.app"),
        remote=fake_remote,
        billing_observer=fake_observer,
        receipt_source=fake_receipts,
    )
