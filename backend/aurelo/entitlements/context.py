"""
Entitlement handle passed to every consumer of plan decisions.

A context is either bound to one workspace's ``WorkspacePlanState`` or
unbound. The unbound variant answers every read as a Starter workspace
with no trial and rejects mutations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from aurelo.billing.catalog import (
    EXPORT_FORMATS,
    SUPPORT_TIERS,
    FeatureKey,
    LimitKey,
    PlanDefinition,
    PlanTier,
    definition_of,
)
from aurelo.core.time import utcnow
from aurelo.entitlements import resolver
from aurelo.entitlements.enforcement import WorkspaceNotBound
from aurelo.entitlements.state import (
    TrialStatus,
    WorkspacePlan,
    WorkspacePlanState,
    effective_tier_for,
    is_trial_expired,
    trial_days_remaining,
    trial_status,
)


class EntitlementContext:
    is_bound: bool = False

    @staticmethod
    def bound(state: WorkspacePlanState) -> "BoundEntitlementContext":
        return BoundEntitlementContext(state)

    @staticmethod
    def unbound(*, clock=utcnow) -> "UnboundEntitlementContext":
        return UnboundEntitlementContext(clock=clock)

    # Subclasses provide the record and the instant reads are evaluated at.
    @property
    def plan(self) -> WorkspacePlan:
        raise NotImplementedError

    def now(self) -> datetime:
        raise NotImplementedError

    @property
    def plan_id(self) -> PlanTier:
        return self.plan.plan_id

    @property
    def effective_plan_id(self) -> PlanTier:
        return effective_tier_for(self.plan, self.now())

    @property
    def plan_definition(self) -> PlanDefinition:
        return definition_of(self.plan_id)

    @property
    def is_trial(self) -> bool:
        plan = self.plan
        return plan.is_trial and plan.trial_end is not None

    @property
    def trial_days_remaining(self) -> int:
        return trial_days_remaining(self.plan.trial_end, self.now())

    @property
    def trial_expired(self) -> bool:
        plan = self.plan
        return is_trial_expired(plan.is_trial, plan.trial_end, self.now())

    @property
    def trial_status(self) -> TrialStatus:
        return trial_status(self.plan, self.now())

    @property
    def can_start_trial(self) -> bool:
        return False

    def can(self, feature) -> bool:
        return resolver.has_feature(self.effective_plan_id, feature)

    def limit(self, limit_key) -> Optional[int]:
        return resolver.limit_of(self.effective_plan_id, limit_key)

    def at_limit(self, limit_key, count: int) -> bool:
        return resolver.is_at_limit(self.effective_plan_id, limit_key, count)

    def would_exceed(self, limit_key, count: int) -> bool:
        return resolver.would_exceed_limit(self.effective_plan_id, limit_key, count)

    def over_limit_by(self, limit_key, count: int) -> int:
        return resolver.over_limit_by(self.effective_plan_id, limit_key, count)

    def is_at_least(self, tier) -> bool:
        return resolver.is_at_least(self.effective_plan_id, tier)

    def is_exactly(self, tier) -> bool:
        return resolver.is_exactly(self.effective_plan_id, tier)

    def required_plan(self, feature) -> PlanTier:
        return resolver.minimum_plan_for(feature)

    def upgrade_plan(self, limit_key) -> Optional[PlanTier]:
        # Upgrade suggestions follow the paid ladder, not trial promotion.
        return resolver.upgrade_plan_for_limit(limit_key, self.plan_id)

    def format_limit(self, value: Optional[int]) -> str:
        return resolver.format_limit(value)

    def set_plan(self, plan: WorkspacePlan) -> WorkspacePlan:
        raise NotImplementedError

    def set_plan_id(self, tier) -> WorkspacePlan:
        raise NotImplementedError

    def start_trial(self) -> WorkspacePlan:
        raise NotImplementedError

    def snapshot(self) -> dict[str, Any]:
        plan = self.plan
        now = self.now()
        effective = effective_tier_for(plan, now)
        return {
            "bound": self.is_bound,
            "plan_id": plan.plan_id.value,
            "effective_plan_id": effective.value,
            "plan_name": definition_of(plan.plan_id).name,
            "activated_at": plan.activated_at,
            "period_end": plan.period_end,
            "is_trial": plan.is_trial and plan.trial_end is not None,
            "trial_end": plan.trial_end,
            "trial_status": trial_status(plan, now).value,
            "trial_days_remaining": trial_days_remaining(plan.trial_end, now),
            "trial_expired": is_trial_expired(plan.is_trial, plan.trial_end, now),
            "can_start_trial": self.can_start_trial,
            "features": {
                key.value: resolver.has_feature(effective, key) for key in FeatureKey
            },
            "limits": {
                key.value: resolver.limit_of(effective, key) for key in LimitKey
            },
            "support_tier": SUPPORT_TIERS[effective],
            "export_formats": list(EXPORT_FORMATS[effective]),
        }


class BoundEntitlementContext(EntitlementContext):
    is_bound = True

    def __init__(self, state: WorkspacePlanState):
        self.state = state

    @property
    def plan(self) -> WorkspacePlan:
        return self.state.plan

    def now(self) -> datetime:
        return self.state.now()

    @property
    def can_start_trial(self) -> bool:
        return self.state.can_start_trial()

    def set_plan(self, plan: WorkspacePlan) -> WorkspacePlan:
        return self.state.set_plan(plan)

    def set_plan_id(self, tier) -> WorkspacePlan:
        return self.state.set_plan_id(tier)

    def start_trial(self) -> WorkspacePlan:
        return self.state.start_trial()


class UnboundEntitlementContext(EntitlementContext):
    def __init__(self, *, clock=utcnow):
        self._clock = clock
        self._plan = WorkspacePlan.starter(clock())

    @property
    def plan(self) -> WorkspacePlan:
        return self._plan

    def now(self) -> datetime:
        return self._clock()

    def set_plan(self, plan: WorkspacePlan) -> WorkspacePlan:
        raise WorkspaceNotBound()

    def set_plan_id(self, tier) -> WorkspacePlan:
        raise WorkspaceNotBound()

    def start_trial(self) -> WorkspacePlan:
        raise WorkspaceNotBound()
