"""Core-native domain models shared by the SDK layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalize aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ABTestGroup(str, Enum):
    """A/B assignment bucket."""

    BASELINE = "baseline"
    MONETAI = "monetai"
    UNKNOWN = "unknown"


class Prediction(str, Enum):
    """Purchase-likelihood verdict returned by the prediction model."""

    NON_PURCHASER = "non-purchaser"
    PURCHASER = "purchaser"


@dataclass(frozen=True, slots=True)
class QueuedEvent:
    """An analytics event logged before initialization completed."""

    event_name: str
    params: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class Discount:
    """One exposure window granted to an app user."""

    started_at: datetime
    ended_at: datetime
    app_user_id: str
    sdk_key: str

    def __post_init__(self):
        if ensure_utc(self.started_at) >= ensure_utc(self.ended_at):
            raise ValueError("discount started_at must be before ended_at")

    def is_active(self, now: datetime | None = None) -> bool:
        """Return True while ``now`` is strictly before ``ended_at``."""
        current = ensure_utc(now) if now is not None else utc_now()
        return current < ensure_utc(self.ended_at)

    def belongs_to(self, user_id: str | None) -> bool:
        return user_id is not None and self.app_user_id == user_id


@dataclass(frozen=True, slots=True)
class Campaign:
    """Campaign assignment returned alongside the test group."""

    id: int
    organization_id: int
    campaign_name: str
    exposure_time_sec: int
    traffic_ratio: float = 0.0
    allocation_ratio: float = 0.0
    discount_ratio: float = 0.0
    created_at: datetime | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    model_accuracy: float | None = None


@dataclass(frozen=True, slots=True)
class PredictionOutcome:
    prediction: Prediction | None = None
    test_group: ABTestGroup | None = None

    @property
    def is_non_purchaser(self) -> bool:
        return self.prediction is Prediction.NON_PURCHASER


@dataclass(frozen=True, slots=True)
class InitializeResult:
    """Outcome of ``MonetaiSDK.initialize``.

    When initialization short-circuits on an already-ready session, the
    organization and group fields are served from the first successful run
    and may be stale.
    """

    organization_id: int
    platform: str
    version: str
    user_id: str
    group: ABTestGroup | None = None


@dataclass(frozen=True, slots=True)
class Integration:
    """Registration record returned by ``/sdk-integrations``."""

    organization_id: int
    platform: str
    version: str


@dataclass(frozen=True, slots=True)
class GroupAssignment:
    """A/B bucket and campaign returned by ``/ab-test``."""

    group: ABTestGroup | None = None
    campaign: Campaign | None = None

    @property
    def exposure_time_sec(self) -> int | None:
        return self.campaign.exposure_time_sec if self.campaign is not None else None
