from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from aurelo.billing.catalog import PlanTier


class EntitlementSnapshot(BaseModel):
    bound: bool
    plan_id: str
    effective_plan_id: str
    plan_name: str
    activated_at: datetime
    period_end: Optional[datetime] = None
    is_trial: bool
    trial_end: Optional[datetime] = None
    trial_status: str
    trial_days_remaining: int
    trial_expired: bool
    can_start_trial: bool
    features: dict[str, bool]
    limits: dict[str, Optional[int]]
    support_tier: str
    export_formats: list[str]


class WorkspacePlanUpdate(BaseModel):
    plan_id: PlanTier
    activated_at: Optional[datetime] = None
    period_end: Optional[datetime] = None
    stripe_subscription_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    is_trial: bool = False
    trial_end: Optional[datetime] = None


class PlanIdUpdate(BaseModel):
    plan_id: PlanTier


class RequiredPlanRead(BaseModel):
    feature: str
    required_plan: str
    enabled: bool


class LimitCheckRead(BaseModel):
    limit_key: str
    count: int
    limit: Optional[int] = None
    formatted_limit: str
    at_limit: bool
    would_exceed: bool
    over_by: int
    upgrade_plan: Optional[str] = None
