from datetime import datetime

from sqlalchemy.orm import Session

from aurelo.billing.catalog import PlanTier, coerce_tier
from aurelo.core.time import utcnow
from aurelo.entitlements.state import WorkspacePlan
from aurelo.models.workspaces import Workspace


def create_workspace(
    db: Session,
    *,
    name: str,
    owner_id: str,
    owner_email: str | None = None,
    now: datetime | None = None,
) -> Workspace:
    workspace = Workspace(
        name=name,
        owner_id=owner_id,
        owner_email=owner_email,
        plan_id=PlanTier.STARTER.value,
        plan_activated_at=now or utcnow(),
        is_trial=False,
        trial_end=None,
    )
    db.add(workspace)
    db.commit()
    db.refresh(workspace)
    return workspace


def get_workspace_by_id(db: Session, workspace_id: int) -> Workspace | None:
    return db.query(Workspace).filter(Workspace.id == workspace_id).first()


def get_workspace_by_stripe_ids(
    db: Session,
    *,
    stripe_subscription_id: str | None = None,
    stripe_customer_id: str | None = None,
) -> Workspace | None:
    if not stripe_subscription_id and not stripe_customer_id:
        return None
    query = db.query(Workspace)
    if stripe_subscription_id:
        query = query.filter(Workspace.stripe_subscription_id == stripe_subscription_id)
    elif stripe_customer_id:
        query = query.filter(Workspace.stripe_customer_id == stripe_customer_id)
    return query.order_by(Workspace.id.desc()).first()


def load_workspace_plan(workspace: Workspace) -> WorkspacePlan:
    # Unknown stored tiers fail closed to Starter.
    return WorkspacePlan(
        plan_id=coerce_tier(workspace.plan_id),
        activated_at=workspace.plan_activated_at or workspace.created_at or utcnow(),
        period_end=workspace.plan_period_end,
        stripe_subscription_id=workspace.stripe_subscription_id,
        stripe_customer_id=workspace.stripe_customer_id,
        is_trial=bool(workspace.is_trial),
        trial_end=workspace.trial_end,
    )


def save_workspace_plan(db: Session, workspace: Workspace, plan: WorkspacePlan) -> Workspace:
    workspace.plan_id = plan.plan_id.value
    workspace.plan_activated_at = plan.activated_at
    workspace.plan_period_end = plan.period_end
    workspace.stripe_subscription_id = plan.stripe_subscription_id
    workspace.stripe_customer_id = plan.stripe_customer_id
    workspace.is_trial = plan.is_trial
    workspace.trial_end = plan.trial_end
    db.commit()
    db.refresh(workspace)
    return workspace
