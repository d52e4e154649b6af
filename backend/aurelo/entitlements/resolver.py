from __future__ import annotations

import logging
from typing import Optional

from aurelo.billing.catalog import (
    PLAN_ORDER,
    FeatureKey,
    LimitKey,
    PlanTier,
    coerce_tier,
    definition_of,
    tier_rank,
)


logger = logging.getLogger(__name__)

UNLIMITED_LABEL = "unlimited"


class UnknownLimitKey(ValueError):
    """Raised for a limit key outside LimitKey; never treated as unlimited."""


def _coerce_feature_key(value) -> Optional[FeatureKey]:
    if isinstance(value, FeatureKey):
        return value
    try:
        return FeatureKey(value)
    except ValueError:
        return None


def coerce_limit_key(value) -> LimitKey:
    if isinstance(value, LimitKey):
        return value
    try:
        return LimitKey(value)
    except ValueError as exc:
        raise UnknownLimitKey(f"Unsupported limit: {value}") from exc


def has_feature(tier, feature_key) -> bool:
    feature = _coerce_feature_key(feature_key)
    if feature is None:
        logger.warning(
            "entitlements.unknown_feature",
            extra={"feature": str(feature_key), "tier": str(tier)},
        )
        return False
    return bool(definition_of(tier).features.get(feature, False))


def limit_of(tier, limit_key) -> Optional[int]:
    return definition_of(tier).limits[coerce_limit_key(limit_key)]


def is_at_limit(tier, limit_key, current_count: int) -> bool:
    limit_value = limit_of(tier, limit_key)
    if limit_value is None:
        return False
    return current_count >= limit_value


def would_exceed_limit(tier, limit_key, current_count: int) -> bool:
    limit_value = limit_of(tier, limit_key)
    if limit_value is None:
        return False
    return current_count + 1 > limit_value


def over_limit_by(tier, limit_key, current_count: int) -> int:
    limit_value = limit_of(tier, limit_key)
    if limit_value is None or current_count <= limit_value:
        return 0
    return current_count - limit_value


def minimum_plan_for(feature_key) -> PlanTier:
    feature = _coerce_feature_key(feature_key)
    if feature is not None:
        for tier in PLAN_ORDER:
            if definition_of(tier).features.get(feature):
                return tier
    return PLAN_ORDER[-1]


def upgrade_plan_for_limit(limit_key, current_tier) -> Optional[PlanTier]:
    key = coerce_limit_key(limit_key)
    current_limit = limit_of(current_tier, key)
    if current_limit is None:
        return None
    for tier in PLAN_ORDER[tier_rank(current_tier) + 1:]:
        candidate = definition_of(tier).limits[key]
        if candidate is None or candidate > current_limit:
            return tier
    return None


def is_at_least(tier, required) -> bool:
    return tier_rank(tier) >= tier_rank(required)


def is_exactly(tier, other) -> bool:
    return coerce_tier(tier) == coerce_tier(other)


def format_limit(value: Optional[int]) -> str:
    if value is None:
        return UNLIMITED_LABEL
    return str(int(value))
