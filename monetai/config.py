"""
Configuration constants and environment loading for the Monetai SDK.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://monetai-api-414410537412.us-central1.run.app/sdk"
DEFAULT_PLATFORM = "ios"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRY_ATTEMPTS = 1
DEFAULT_RETRY_BACKOFF_SECONDS = 0.25

# Paywall/banner pages hosted by the dashboard
DEFAULT_WEB_BASE_URL = "https://dashboard.monetai.io/webview"

_BASE_URL_ENV = "MONETAI_BASE_URL"
_PLATFORM_ENV = "MONETAI_PLATFORM"
_TIMEOUT_SECONDS_ENV = "MONETAI_TIMEOUT_SECONDS"
_RETRY_ATTEMPTS_ENV = "MONETAI_RETRY_ATTEMPTS"
_BUNDLE_ID_ENV = "MONETAI_BUNDLE_ID"
_WEB_BASE_URL_ENV = "MONETAI_WEB_BASE_URL"


@dataclass(frozen=True)
class SDKConfig:
    base_url: str = DEFAULT_BASE_URL
    platform: str = DEFAULT_PLATFORM
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    bundle_id: str | None = None
    web_base_url: str = DEFAULT_WEB_BASE_URL


def _to_int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _to_float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _to_str_env(name: str, default: str | None) -> str | None:
    raw = os.environ.get(name, "").strip()
    return raw or default


def load_config(dotenv_path: str | Path | None = None) -> SDKConfig:
    """Build an ``SDKConfig`` from ``MONETAI_*`` environment variables.

    When ``dotenv_path`` is given the file is loaded first; variables already
    present in the environment take precedence over the file.
    """
    if dotenv_path is not None:
        load_dotenv(dotenv_path, override=False)

    return SDKConfig(
        base_url=_to_str_env(_BASE_URL_ENV, DEFAULT_BASE_URL).rstrip("/"),
        platform=_to_str_env(_PLATFORM_ENV, DEFAULT_PLATFORM),
        timeout_seconds=_to_float_env(_TIMEOUT_SECONDS_ENV, DEFAULT_TIMEOUT_SECONDS),
        retry_attempts=_to_int_env(_RETRY_ATTEMPTS_ENV, DEFAULT_RETRY_ATTEMPTS),
        bundle_id=_to_str_env(_BUNDLE_ID_ENV, None),
        web_base_url=_to_str_env(_WEB_BASE_URL_ENV, DEFAULT_WEB_BASE_URL).rstrip("/"),
    )
