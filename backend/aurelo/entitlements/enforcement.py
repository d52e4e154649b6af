from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from aurelo.core.time import to_naive_utc, utcnow


@dataclass
class PlanEnforcementError(Exception):
    code: str
    message: str
    status_code: int
    upgrade_plan_key: str | None = None
    limit: int | None = None
    current_usage: int | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.upgrade_plan_key:
            payload["upgrade_plan_key"] = self.upgrade_plan_key
        if self.limit is not None:
            payload["limit"] = self.limit
        if self.current_usage is not None:
            payload["current_usage"] = self.current_usage
        return payload


class PlanLimitExceeded(PlanEnforcementError):
    def __init__(
        self,
        message: str,
        *,
        limit: int | None,
        current_usage: int | None,
        upgrade_plan_key: str | None = None,
    ):
        super().__init__(
            code="plan_limit_exceeded",
            message=message,
            status_code=402,
            upgrade_plan_key=upgrade_plan_key,
            limit=limit,
            current_usage=current_usage,
        )


class FeatureNotEnabled(PlanEnforcementError):
    def __init__(
        self,
        message: str,
        *,
        upgrade_plan_key: str | None = None,
    ):
        super().__init__(
            code="feature_not_enabled",
            message=message,
            status_code=403,
            upgrade_plan_key=upgrade_plan_key,
        )


class TrialUnavailable(PlanEnforcementError):
    def __init__(self, code: str, message: str):
        super().__init__(code=code, message=message, status_code=409)


class WorkspaceNotBound(PlanEnforcementError):
    def __init__(self, message: str = "No workspace selected for this request"):
        super().__init__(code="workspace_not_bound", message=message, status_code=400)


@dataclass
class RangeClampResult:
    from_ts: datetime | None
    to_ts: datetime | None
    max_days: int | None
    clamped: bool
    notice: str | None = None
    # True when the whole requested window predates the retention limit.
    empty: bool = False


def _key_value(key) -> str:
    return getattr(key, "value", key)


def require_feature(ctx, feature, *, message: str | None = None) -> None:
    if ctx.can(feature):
        return
    required = ctx.required_plan(feature)
    message = message or f"Feature '{_key_value(feature)}' is not enabled for this plan"
    raise FeatureNotEnabled(message, upgrade_plan_key=_key_value(required))


def assert_limit(
    ctx,
    limit_key,
    current_value: int | None,
    *,
    mode: str = "hard",
    message: str | None = None,
) -> bool:
    """Gate the creation of one more item; returns True when soft mode hits the limit."""
    if current_value is None:
        return False
    if not ctx.would_exceed(limit_key, current_value):
        return False
    if mode == "soft":
        return True
    upgrade = ctx.upgrade_plan(limit_key)
    message = message or f"Plan limit reached for {_key_value(limit_key)}"
    raise PlanLimitExceeded(
        message,
        limit=ctx.limit(limit_key),
        current_usage=current_value,
        upgrade_plan_key=_key_value(upgrade) if upgrade else None,
    )


def clamp_range(
    ctx,
    limit_key,
    from_ts: datetime | None,
    to_ts: datetime | None,
    *,
    now: datetime | None = None,
) -> RangeClampResult:
    max_days = ctx.limit(limit_key)
    normalized_from = to_naive_utc(from_ts)
    normalized_to = to_naive_utc(to_ts)
    if max_days is None:
        return RangeClampResult(
            from_ts=normalized_from,
            to_ts=normalized_to,
            max_days=None,
            clamped=False,
        )
    now_ts = to_naive_utc(now) or utcnow()
    max_range_start = now_ts - timedelta(days=max_days)
    notice = f"History limited to the last {max_days} days on your plan."
    if normalized_to is not None and normalized_to < max_range_start:
        return RangeClampResult(
            from_ts=max_range_start,
            to_ts=normalized_to,
            max_days=max_days,
            clamped=True,
            notice=notice,
            empty=True,
        )
    effective_to = normalized_to if normalized_to and normalized_to <= now_ts else now_ts
    effective_from = (
        normalized_from
        if normalized_from and normalized_from >= max_range_start
        else max_range_start
    )
    clamped = effective_from != normalized_from or effective_to != normalized_to
    return RangeClampResult(
        from_ts=effective_from,
        to_ts=effective_to,
        max_days=max_days,
        clamped=clamped,
        notice=notice if clamped else None,
    )
