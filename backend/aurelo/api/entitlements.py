from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from aurelo.core.config import settings
from aurelo.core.db import get_db
from aurelo.core.time import utcnow
from aurelo.entitlements.resolver import UnknownLimitKey, coerce_limit_key
from aurelo.entitlements.state import WorkspacePlan
from aurelo.schemas.entitlements import (
    EntitlementSnapshot,
    LimitCheckRead,
    PlanIdUpdate,
    RequiredPlanRead,
    WorkspacePlanUpdate,
)
from aurelo.workspaces.context import RequestContext
from aurelo.workspaces.dependencies import get_request_context, persist_entitlements


router = APIRouter(prefix="/entitlements", tags=["entitlements"])


def require_plan_override() -> None:
    if not settings.ALLOW_PLAN_OVERRIDE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Plan overrides are disabled",
        )


@router.get("", response_model=EntitlementSnapshot)
def read_entitlements(ctx: RequestContext = Depends(get_request_context)):
    return ctx.entitlements.snapshot()


@router.get("/required-plan/{feature}", response_model=RequiredPlanRead)
def read_required_plan(feature: str, ctx: RequestContext = Depends(get_request_context)):
    return RequiredPlanRead(
        feature=feature,
        required_plan=ctx.entitlements.required_plan(feature).value,
        enabled=ctx.entitlements.can(feature),
    )


@router.get("/limits/{limit_key}", response_model=LimitCheckRead)
def check_limit(
    limit_key: str,
    count: int = Query(0, ge=0),
    ctx: RequestContext = Depends(get_request_context),
):
    try:
        key = coerce_limit_key(limit_key)
    except UnknownLimitKey as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    entitlements = ctx.entitlements
    limit_value = entitlements.limit(key)
    upgrade = entitlements.upgrade_plan(key)
    return LimitCheckRead(
        limit_key=key.value,
        count=count,
        limit=limit_value,
        formatted_limit=entitlements.format_limit(limit_value),
        at_limit=entitlements.at_limit(key, count),
        would_exceed=entitlements.would_exceed(key, count),
        over_by=entitlements.over_limit_by(key, count),
        upgrade_plan=upgrade.value if upgrade else None,
    )


@router.post("/trial", response_model=EntitlementSnapshot)
def start_trial(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    ctx.entitlements.start_trial()
    persist_entitlements(db, ctx)
    return ctx.entitlements.snapshot()


@router.put(
    "/plan",
    response_model=EntitlementSnapshot,
    dependencies=[Depends(require_plan_override)],
)
def replace_plan(
    payload: WorkspacePlanUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    ctx.entitlements.set_plan(
        WorkspacePlan(
            plan_id=payload.plan_id,
            activated_at=payload.activated_at or utcnow(),
            period_end=payload.period_end,
            stripe_subscription_id=payload.stripe_subscription_id,
            stripe_customer_id=payload.stripe_customer_id,
            is_trial=payload.is_trial,
            trial_end=payload.trial_end,
        )
    )
    persist_entitlements(db, ctx)
    return ctx.entitlements.snapshot()


@router.patch(
    "/plan-id",
    response_model=EntitlementSnapshot,
    dependencies=[Depends(require_plan_override)],
)
def change_plan_id(
    payload: PlanIdUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    ctx.entitlements.set_plan_id(payload.plan_id)
    persist_entitlements(db, ctx)
    return ctx.entitlements.snapshot()
