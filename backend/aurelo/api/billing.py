from datetime import datetime, timezone

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from aurelo.billing.catalog import PlanTier, normalize_plan_key, plan_key_from_price_id
from aurelo.core.config import settings
from aurelo.core.db import get_db
from aurelo.core.logging import logger
from aurelo.core.time import utcnow
from aurelo.crud.workspaces import (
    get_workspace_by_id,
    get_workspace_by_stripe_ids,
    load_workspace_plan,
    save_workspace_plan,
)
from aurelo.entitlements.state import WorkspacePlan, WorkspacePlanState
from aurelo.models.workspaces import Workspace
from aurelo.workspaces.constants import parse_workspace_id


router = APIRouter(prefix="/billing", tags=["billing"])

SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}

# Subscriptions in these states keep their paid tier.
ACTIVE_STATUSES = {"active", "trialing", "past_due"}


def _require_webhook_secret() -> None:
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Stripe webhook secret is not configured",
        )


def _unix_to_datetime(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)


def _extract_price_id(subscription_obj: dict) -> str | None:
    items = subscription_obj.get("items", {}) if isinstance(subscription_obj, dict) else {}
    data = items.get("data", []) if isinstance(items, dict) else []
    if not data:
        return None
    price = data[0].get("price") if isinstance(data[0], dict) else None
    return price.get("id") if isinstance(price, dict) else None


def _resolve_workspace(
    db: Session,
    *,
    workspace_hint: str | None,
    stripe_subscription_id: str | None,
    stripe_customer_id: str | None,
) -> Workspace | None:
    workspace_id = parse_workspace_id(workspace_hint)
    if workspace_id is not None:
        workspace = get_workspace_by_id(db, workspace_id)
        if workspace:
            return workspace
    workspace = get_workspace_by_stripe_ids(db, stripe_subscription_id=stripe_subscription_id)
    if workspace:
        return workspace
    return get_workspace_by_stripe_ids(db, stripe_customer_id=stripe_customer_id)


def _resolve_tier(event_type: str, data_object: dict) -> PlanTier:
    if event_type == "customer.subscription.deleted":
        return PlanTier.STARTER
    if data_object.get("status", "active") not in ACTIVE_STATUSES:
        return PlanTier.STARTER
    metadata = data_object.get("metadata") or {}
    tier = plan_key_from_price_id(_extract_price_id(data_object)) or normalize_plan_key(
        metadata.get("plan_key")
    )
    return tier or PlanTier.STARTER


def apply_subscription_event(db: Session, event_type: str, data_object: dict) -> Workspace | None:
    """Replace the matching workspace's plan record from one subscription payload."""
    metadata = data_object.get("metadata") or {}
    stripe_subscription_id = data_object.get("id")
    stripe_customer_id = data_object.get("customer")
    workspace = _resolve_workspace(
        db,
        workspace_hint=metadata.get("workspace_id"),
        stripe_subscription_id=stripe_subscription_id,
        stripe_customer_id=stripe_customer_id,
    )
    if workspace is None:
        logger.warning(
            "billing.webhook.unmatched",
            extra={"event_type": event_type, "stripe_subscription_id": stripe_subscription_id},
        )
        return None

    state = WorkspacePlanState(load_workspace_plan(workspace))
    current = state.plan
    tier = _resolve_tier(event_type, data_object)
    # A paid tier ends a running trial. trial_end always survives so a
    # downgrade cannot re-open the grant.
    is_trial = False if tier is not PlanTier.STARTER else current.is_trial
    state.set_plan(
        WorkspacePlan(
            plan_id=tier,
            activated_at=_unix_to_datetime(data_object.get("current_period_start")) or utcnow(),
            period_end=_unix_to_datetime(data_object.get("current_period_end")),
            stripe_subscription_id=stripe_subscription_id,
            stripe_customer_id=stripe_customer_id or current.stripe_customer_id,
            is_trial=is_trial,
            trial_end=current.trial_end,
        )
    )
    save_workspace_plan(db, workspace, state.plan)
    logger.info(
        "billing.webhook.applied",
        extra={
            "event_type": event_type,
            "workspace_id": workspace.id,
            "plan_id": tier.value,
            "subscription_status": data_object.get("status"),
        },
    )
    return workspace


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
):
    _require_webhook_secret()
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing Stripe signature")
    try:
        event = stripe.Webhook.construct_event(
            payload, sig_header, settings.STRIPE_WEBHOOK_SECRET
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload") from exc
    except stripe.SignatureVerificationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature") from exc

    event_type = event.get("type")
    data_object = event.get("data", {}).get("object", {})
    if event_type in SUBSCRIPTION_EVENTS:
        apply_subscription_event(db, event_type, data_object)
    return {"received": True}
