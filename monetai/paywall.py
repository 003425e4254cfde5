"""Paywall and banner parameter builders.

Pure data: UI layers render the hosted web pages from these values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from urllib.parse import urlencode

from core.domain import Discount, ensure_utc, utc_now

DEFAULT_BANNER_BOTTOM = 20.0


class PaywallStyle(str, Enum):
    COMPACT = "compact"
    HIGHLIGHT_BENEFITS = "highlight-benefits"
    KEY_FEATURE_SUMMARY = "key-feature-summary"
    TEXT_FOCUSED = "text-focused"


@dataclass(frozen=True)
class Feature:
    title: str
    description: str
    is_premium_only: bool = False

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "isPremiumOnly": self.is_premium_only,
        }


@dataclass(frozen=True)
class PaywallConfig:
    discount_percent: int
    regular_price: str
    discounted_price: str
    locale: str
    style: PaywallStyle
    features: list[Feature] = field(default_factory=list)
    enabled: bool = True
    banner_bottom: float = DEFAULT_BANNER_BOTTOM


@dataclass(frozen=True)
class PaywallParams:
    discount_percent: str
    ended_at: str
    regular_price: str
    discounted_price: str
    locale: str
    features: list[Feature]
    style: PaywallStyle


@dataclass(frozen=True)
class BannerParams:
    enabled: bool
    locale: str
    discount_percent: int
    ended_at: datetime
    style: PaywallStyle
    bottom: float = DEFAULT_BANNER_BOTTOM


def _iso_seconds(value: datetime) -> str:
    return ensure_utc(value).astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def build_paywall_params(config: PaywallConfig, discount: Discount | None) -> PaywallParams | None:
    """Return paywall parameters, or None while no discount is known."""
    if discount is None:
        return None
    return PaywallParams(
        discount_percent=str(config.discount_percent),
        ended_at=_iso_seconds(discount.ended_at),
        regular_price=config.regular_price,
        discounted_price=config.discounted_price,
        locale=config.locale,
        features=list(config.features),
        style=config.style,
    )


def build_banner_params(config: PaywallConfig, discount: Discount | None) -> BannerParams | None:
    if discount is None:
        return None
    return BannerParams(
        enabled=config.enabled,
        locale=config.locale,
        discount_percent=config.discount_percent,
        ended_at=discount.ended_at,
        style=config.style,
        bottom=config.banner_bottom,
    )


def paywall_url(params: PaywallParams, *, web_base_url: str) -> str:
    """Build the hosted paywall page URL; empty values are left out of the query."""
    query: list[tuple[str, str]] = []
    for name, value in (
        ("discount", params.discount_percent),
        ("endedAt", params.ended_at),
        ("regularPrice", params.regular_price),
        ("discountedPrice", params.discounted_price),
        ("locale", params.locale),
    ):
        if value:
            query.append((name, value))
    if params.features:
        query.append(("features", json.dumps([f.to_dict() for f in params.features], separators=(",", ":"))))

    base = f"{web_base_url.rstrip('/')}/paywall/{params.style.value}"
    return f"{base}?{urlencode(query)}" if query else base


def banner_url(params: BannerParams, *, web_base_url: str) -> str:
    query = urlencode(
        [
            ("discount", str(params.discount_percent)),
            ("locale", params.locale),
            ("endedAt", _iso_seconds(params.ended_at)),
        ]
    )
    return f"{web_base_url.rstrip('/')}/banner/{params.style.value}?{query}"


def is_promotion_expired(discount: Discount | None, now: datetime | None = None) -> bool:
    """True once ``now`` reaches ``ended_at``; a missing discount never expires."""
    if discount is None:
        return False
    return not discount.is_active(now if now is not None else utc_now())
