"""Backend HTTP client adapter with timeout/error mapping."""

from __future__ import annotations

import asyncio
import json
import logging
import socket
import time
from datetime import datetime
from typing import Any
from urllib import error, parse, request

from pydantic import BaseModel, ValidationError

from contracts.v1.schemas import (
    AssignTestGroupRequest,
    AssignTestGroupResponse,
    CreateDiscountRequest,
    CreateDiscountResponse,
    ErrorResponse,
    LatestDiscountResponse,
    LogEventRequest,
    PredictRequest,
    PredictResponse,
    ReceiptValidationRequest,
    RegisterIntegrationRequest,
    RegisterIntegrationResponse,
    TransactionMappingRequest,
)
from core.domain import Discount, GroupAssignment, Integration, PredictionOutcome

from .config import SDKConfig
from .errors import ApiError, NetworkError
from .mappers import (
    contract_to_assignment,
    contract_to_discount,
    contract_to_integration,
    contract_to_prediction,
)

logger = logging.getLogger(__name__)


def _json_safe_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    """Return ``params`` exactly as they go on the wire, or None when they cannot.

    Keys come back as strings. NaN and infinities count as unserializable.
    The event itself is still sent without params.
    """
    if params is None:
        return None
    try:
        return json.loads(json.dumps(params, allow_nan=False))
    except (TypeError, ValueError) as e:
        logger.warning("Dropping non-serializable event params: %s", e)
        return None


class RemoteClient:
    """HTTP adapter for the SDK backend.

    Every public operation is a coroutine; the blocking ``urllib`` call runs
    in a worker thread so the owning event loop is never blocked.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 30.0,
        retry_attempts: int = 1,
        retry_backoff_seconds: float = 0.25,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.retry_attempts = max(1, retry_attempts)
        self.retry_backoff_seconds = max(0.0, retry_backoff_seconds)

    @classmethod
    def from_config(cls, config: SDKConfig) -> "RemoteClient":
        return cls(
            base_url=config.base_url,
            timeout_seconds=config.timeout_seconds,
            retry_attempts=config.retry_attempts,
            retry_backoff_seconds=config.retry_backoff_seconds,
        )

    async def register_integration(self, *, sdk_key: str, platform: str, version: str) -> Integration:
        """Call ``POST /sdk-integrations``."""
        req = RegisterIntegrationRequest(sdk_key=sdk_key, platform=platform, version=version)
        res = await self._call("POST", "/sdk-integrations", req, RegisterIntegrationResponse)
        return contract_to_integration(res)

    async def assign_test_group(self, *, sdk_key: str, user_id: str, platform: str) -> GroupAssignment:
        """Call ``POST /ab-test``."""
        req = AssignTestGroupRequest(sdk_key=sdk_key, user_id=user_id, platform=platform)
        res = await self._call("POST", "/ab-test", req, AssignTestGroupResponse)
        return contract_to_assignment(res)

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
        """Call ``POST /events`` (no content expected)."""
        req = LogEventRequest(
            sdk_key=sdk_key,
            user_id=user_id,
            event_name=event_name,
            created_at=created_at,
            platform=platform,
            params=_json_safe_params(params),
        )
        await self._call("POST", "/events", req, None)

    async def predict(self, *, sdk_key: str, user_id: str) -> PredictionOutcome:
        """Call ``POST /predict``. An unknown prediction value is a decode error."""
        req = PredictRequest(sdk_key=sdk_key, user_id=user_id)
        res = await self._call("POST", "/predict", req, PredictResponse)
        return contract_to_prediction(res)

    async def get_latest_discount(self, *, sdk_key: str, user_id: str) -> Discount | None:
        """Call ``GET /app-user-discounts/latest``."""
        query = parse.urlencode({"sdkKey": sdk_key, "appUserId": user_id})
        res = await self._call("GET", f"/app-user-discounts/latest?{query}", None, LatestDiscountResponse)
        if res.discount is None:
            return None
        return contract_to_discount(res.discount)

    async def create_discount(
        self,
        *,
        sdk_key: str,
        user_id: str,
        started_at: datetime,
        ended_at: datetime,
    ) -> Discount:
        """Call ``POST /app-user-discounts``."""
        req = CreateDiscountRequest(
            sdk_key=sdk_key,
            app_user_id=user_id,
            started_at=started_at,
            ended_at=ended_at,
        )
        res = await self._call("POST", "/app-user-discounts", req, CreateDiscountResponse)
        return contract_to_discount(res.discount)

    async def map_transaction_to_user(
        self,
        *,
        transaction_id: str,
        bundle_id: str,
        sdk_key: str,
        user_id: str,
    ) -> None:
        """Call ``POST /transaction-id-to-user-id/ios`` (no content expected)."""
        req = TransactionMappingRequest(
            transaction_id=transaction_id,
            bundle_id=bundle_id,
            sdk_key=sdk_key,
            user_id=user_id,
        )
        await self._call("POST", "/transaction-id-to-user-id/ios", req, None)

    async def validate_receipt(
        self,
        *,
        receipt_data: str,
        bundle_id: str,
        sdk_key: str,
        user_id: str,
    ) -> None:
        """Call ``POST /transaction-id-to-user-id/ios/receipt`` (no content expected)."""
        req = ReceiptValidationRequest(
            receipt_data=receipt_data,
            bundle_id=bundle_id,
            sdk_key=sdk_key,
            user_id=user_id,
        )
        await self._call("POST", "/transaction-id-to-user-id/ios/receipt", req, None)

    async def _call(
        self,
        method: str,
        path: str,
        req: BaseModel | None,
        response_model: type[BaseModel] | None,
    ) -> Any:
        payload = req.model_dump(mode="json", by_alias=True, exclude_none=True) if req is not None else None
        raw = await asyncio.to_thread(self._request_raw, method, path, payload)

        if response_model is None:
            return None
        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Undecodable body from %s %s: %r", method, path, raw[:200])
            raise NetworkError(e) from e
        if not body.strip():
            raise NetworkError("Empty response data")
        try:
            return response_model.model_validate(json.loads(body))
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON from %s %s: %r", method, path, body[:200])
            raise NetworkError(f"invalid JSON: {e}") from e
        except ValidationError as e:
            logger.warning("Response contract mismatch for %s %s: %s", method, path, e)
            raise NetworkError(e) from e

    def _request_raw(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> bytes:
        """Send a JSON request and return the undecoded body, normalizing failures."""
        url = f"{self.base_url}{path}"
        data = json.dumps(payload).encode("utf-8") if payload is not None else None

        for attempt in range(1, self.retry_attempts + 1):
            req = request.Request(
                url,
                data=data,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                method=method,
            )
            try:
                with request.urlopen(req, timeout=self.timeout_seconds) as resp:
                    return resp.read()
            except error.HTTPError as e:
                if e.code >= 500 and attempt < self.retry_attempts:
                    self._sleep_before_retry(attempt)
                    continue
                message = self._read_http_error_message(e)
                if message is not None:
                    raise ApiError(message, status_code=e.code) from e
                raise NetworkError(f"HTTP {e.code}: {e.reason}") from e
            except (error.URLError, TimeoutError, socket.timeout) as e:
                if attempt < self.retry_attempts:
                    self._sleep_before_retry(attempt)
                    continue
                raise NetworkError(e) from e

        raise NetworkError("request failed")

    @staticmethod
    def _read_http_error_message(exc: error.HTTPError) -> str | None:
        """Return the ``message`` of a structured error body, if there is one."""
        try:
            body = exc.read().decode("utf-8") if exc.fp is not None else ""
        except (OSError, UnicodeDecodeError):
            return None
        if not body:
            return None
        try:
            return ErrorResponse.model_validate(json.loads(body)).message
        except (json.JSONDecodeError, ValidationError):
            return None

    def _sleep_before_retry(self, attempt: int) -> None:
        if self.retry_backoff_seconds <= 0:
            return
        time.sleep(self.retry_backoff_seconds * attempt)
