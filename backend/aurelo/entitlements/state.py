"""
Per-workspace plan record and the trial state machine.

Trial sub-states are never cached: every read recomputes them from
``trial_end`` against the injected clock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from aurelo.billing.catalog import PlanTier, coerce_tier
from aurelo.core.time import to_naive_utc, utcnow
from aurelo.entitlements.enforcement import TrialUnavailable


logger = logging.getLogger(__name__)

TRIAL_DURATION = timedelta(days=7)
TRIAL_TIER = PlanTier.PRO
_ONE_DAY = timedelta(days=1)

Clock = Callable[[], datetime]


class TrialStatus(str, Enum):
    NONE = "none"
    ACTIVE = "active"
    LAPSED = "lapsed"


@dataclass(frozen=True)
class WorkspacePlan:
    plan_id: PlanTier
    activated_at: datetime
    period_end: Optional[datetime] = None
    stripe_subscription_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    is_trial: bool = False
    trial_end: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "plan_id", coerce_tier(self.plan_id))
        object.__setattr__(self, "activated_at", to_naive_utc(self.activated_at))
        object.__setattr__(self, "period_end", to_naive_utc(self.period_end))
        object.__setattr__(self, "trial_end", to_naive_utc(self.trial_end))
        object.__setattr__(self, "is_trial", bool(self.is_trial))

    @classmethod
    def starter(cls, now: Optional[datetime] = None) -> "WorkspacePlan":
        return cls(plan_id=PlanTier.STARTER, activated_at=now or utcnow())

    @property
    def trial_granted(self) -> bool:
        return self.is_trial or self.trial_end is not None


def trial_days_remaining(trial_end: Optional[datetime], now: datetime) -> int:
    if trial_end is None:
        return 0
    remaining = to_naive_utc(trial_end) - to_naive_utc(now)
    if remaining <= timedelta(0):
        return 0
    return -((-remaining) // _ONE_DAY)


def is_trial_expired(is_trial: bool, trial_end: Optional[datetime], now: datetime) -> bool:
    return bool(is_trial) and trial_end is not None and to_naive_utc(trial_end) <= to_naive_utc(now)


def trial_status(plan: WorkspacePlan, now: datetime) -> TrialStatus:
    if plan.is_trial and plan.trial_end is not None:
        if not is_trial_expired(plan.is_trial, plan.trial_end, now):
            return TrialStatus.ACTIVE
    # Any consumed grant reads as lapsed, including one ended by a paid upgrade.
    if plan.trial_granted:
        return TrialStatus.LAPSED
    return TrialStatus.NONE


def effective_tier_for(plan: WorkspacePlan, now: datetime) -> PlanTier:
    if trial_status(plan, now) is TrialStatus.ACTIVE:
        return TRIAL_TIER
    return plan.plan_id


class WorkspacePlanState:
    """
    Owns the single mutable WorkspacePlan of one workspace.

    Every mutation swaps the whole record under a lock, so readers on other
    threads see either the old record or the new one.
    """

    def __init__(self, plan: Optional[WorkspacePlan] = None, *, clock: Clock = utcnow):
        self._clock = clock
        self._lock = threading.RLock()
        self._plan = plan or WorkspacePlan.starter(clock())

    def now(self) -> datetime:
        return self._clock()

    @property
    def plan(self) -> WorkspacePlan:
        return self._plan

    @property
    def plan_id(self) -> PlanTier:
        return self._plan.plan_id

    def set_plan(self, plan: WorkspacePlan) -> WorkspacePlan:
        with self._lock:
            previous = self._plan
            self._plan = plan
        logger.info(
            "entitlements.plan_replaced",
            extra={"from_plan": previous.plan_id.value, "to_plan": plan.plan_id.value},
        )
        return plan

    def set_plan_id(self, tier) -> WorkspacePlan:
        tier = coerce_tier(tier)
        with self._lock:
            previous = self._plan.plan_id
            self._plan = replace(self._plan, plan_id=tier)
            updated = self._plan
        logger.info(
            "entitlements.plan_id_changed",
            extra={"from_plan": previous.value, "to_plan": tier.value},
        )
        return updated

    def can_start_trial(self) -> bool:
        plan = self._plan
        return plan.plan_id is PlanTier.STARTER and not plan.trial_granted

    def start_trial(self) -> WorkspacePlan:
        with self._lock:
            plan = self._plan
            if plan.trial_granted:
                raise TrialUnavailable(
                    "trial_already_consumed",
                    "This workspace has already used its trial",
                )
            if plan.plan_id is not PlanTier.STARTER:
                raise TrialUnavailable(
                    "trial_requires_starter",
                    "Trials are only available on the Starter plan",
                )
            trial_end = self.now() + TRIAL_DURATION
            self._plan = replace(plan, is_trial=True, trial_end=trial_end)
            updated = self._plan
        logger.info(
            "entitlements.trial_started",
            extra={"trial_end": trial_end.isoformat(), "trial_tier": TRIAL_TIER.value},
        )
        return updated

    @property
    def is_trial(self) -> bool:
        plan = self._plan
        return plan.is_trial and plan.trial_end is not None

    @property
    def trial_days_remaining(self) -> int:
        return trial_days_remaining(self._plan.trial_end, self.now())

    @property
    def trial_expired(self) -> bool:
        plan = self._plan
        return is_trial_expired(plan.is_trial, plan.trial_end, self.now())

    @property
    def trial_status(self) -> TrialStatus:
        return trial_status(self._plan, self.now())

    @property
    def effective_tier(self) -> PlanTier:
        return effective_tier_for(self._plan, self.now())
