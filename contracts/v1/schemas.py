"""Pydantic contracts for the v1 SDK backend API."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from core.domain import ABTestGroup, Prediction, ensure_utc


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision, e.g. ``2024-05-01T12:00:00.000Z``."""
    utc = ensure_utc(value).astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _StrictModel(BaseModel):
    """Base model that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class _ResponseModel(BaseModel):
    """Base model for server payloads; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RegisterIntegrationRequest(_StrictModel):
    sdk_key: str = Field(alias="sdkKey", min_length=1)
    platform: str
    version: str


class AssignTestGroupRequest(_StrictModel):
    sdk_key: str = Field(alias="sdkKey", min_length=1)
    user_id: str = Field(alias="userId", min_length=1)
    platform: str


class LogEventRequest(_StrictModel):
    sdk_key: str = Field(alias="sdkKey", min_length=1)
    user_id: str = Field(alias="userId", min_length=1)
    event_name: str = Field(alias="eventName")
    created_at: datetime = Field(alias="createdAt")
    platform: str
    params: dict[str, Any] | None = None

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str:
        return format_timestamp(value)


class PredictRequest(_StrictModel):
    sdk_key: str = Field(alias="sdkKey", min_length=1)
    user_id: str = Field(alias="userId", min_length=1)


class CreateDiscountRequest(_StrictModel):
    sdk_key: str = Field(alias="sdkKey", min_length=1)
    app_user_id: str = Field(alias="appUserId", min_length=1)
    started_at: datetime = Field(alias="startedAt")
    ended_at: datetime = Field(alias="endedAt")

    @field_serializer("started_at", "ended_at")
    def _serialize_window(self, value: datetime) -> str:
        return format_timestamp(value)


class TransactionMappingRequest(_StrictModel):
    transaction_id: str = Field(alias="transactionId", min_length=1)
    bundle_id: str = Field(alias="bundleId", min_length=1)
    sdk_key: str = Field(alias="sdkKey", min_length=1)
    user_id: str = Field(alias="userId", min_length=1)


class ReceiptValidationRequest(_StrictModel):
    receipt_data: str = Field(alias="receiptData", min_length=1)
    bundle_id: str = Field(alias="bundleId", min_length=1)
    sdk_key: str = Field(alias="sdkKey", min_length=1)
    user_id: str = Field(alias="userId", min_length=1)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


_GROUP_BY_INDEX = {0: ABTestGroup.BASELINE, 1: ABTestGroup.MONETAI, 2: ABTestGroup.UNKNOWN}
_PREDICTION_BY_INDEX = {0: Prediction.NON_PURCHASER, 1: Prediction.PURCHASER}


def _decode_group(value: Any) -> ABTestGroup | None:
    """Lenient group decoding: anything unrecognised becomes ``UNKNOWN``."""
    if value is None:
        return None
    if isinstance(value, ABTestGroup):
        return value
    if isinstance(value, bool):
        return ABTestGroup.UNKNOWN
    if isinstance(value, int):
        return _GROUP_BY_INDEX.get(value, ABTestGroup.UNKNOWN)
    if isinstance(value, str):
        try:
            return ABTestGroup(value)
        except ValueError:
            return ABTestGroup.UNKNOWN
    return ABTestGroup.UNKNOWN


def _decode_prediction(value: Any) -> Prediction | None:
    """Strict prediction decoding: unrecognised values are rejected."""
    if value is None:
        return None
    if isinstance(value, Prediction):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        if value in _PREDICTION_BY_INDEX:
            return _PREDICTION_BY_INDEX[value]
        raise ValueError(f"Invalid prediction int value: {value}")
    if isinstance(value, str):
        try:
            return Prediction(value)
        except ValueError:
            raise ValueError(f"Invalid prediction value: {value}") from None
    raise ValueError("Expected string or int for prediction value")


class ErrorResponse(_ResponseModel):
    message: str


class RegisterIntegrationResponse(_ResponseModel):
    organization_id: int
    platform: str
    version: str


class CampaignContract(_ResponseModel):
    id: int
    organization_id: int
    campaign_name: str
    exposure_time_sec: int = Field(ge=0)
    traffic_ratio: float = 0.0
    allocation_ratio: float = 0.0
    discount_ratio: float = 0.0
    created_at: datetime | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    model_accuracy: float | None = None


class AssignTestGroupResponse(_ResponseModel):
    group: ABTestGroup | None = None
    campaign: CampaignContract | None = None

    @field_validator("group", mode="before")
    @classmethod
    def _lenient_group(cls, value: Any) -> ABTestGroup | None:
        return _decode_group(value)


class PredictResponse(_ResponseModel):
    prediction: Prediction | None = None
    test_group: ABTestGroup | None = Field(default=None, alias="testGroup")

    @field_validator("prediction", mode="before")
    @classmethod
    def _strict_prediction(cls, value: Any) -> Prediction | None:
        return _decode_prediction(value)

    @field_validator("test_group", mode="before")
    @classmethod
    def _lenient_test_group(cls, value: Any) -> ABTestGroup | None:
        return _decode_group(value)


class DiscountContract(_ResponseModel):
    started_at: datetime
    ended_at: datetime
    app_user_id: str
    sdk_key: str

    @model_validator(mode="after")
    def _window_is_ordered(self) -> "DiscountContract":
        if ensure_utc(self.started_at) >= ensure_utc(self.ended_at):
            raise ValueError("discount started_at must be before ended_at")
        return self


class LatestDiscountResponse(_ResponseModel):
    discount: DiscountContract | None = None


class CreateDiscountResponse(_ResponseModel):
    discount: DiscountContract
