from datetime import datetime, timedelta
from uuid import uuid4

from aurelo.crud.clients import create_client
from aurelo.crud.workspaces import create_workspace, load_workspace_plan, save_workspace_plan
from aurelo.entitlements.state import WorkspacePlan


class FixedClock:
    """Injectable clock that only moves when a test advances it."""

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


def make_workspace(db, *, name: str | None = None, owner_id: str | None = None, plan_id: str = "starter"):
    workspace = create_workspace(
        db,
        name=name or f"Workspace {uuid4().hex[:6]}",
        owner_id=owner_id or f"user_{uuid4().hex[:8]}",
    )
    if plan_id != "starter":
        plan = load_workspace_plan(workspace)
        save_workspace_plan(
            db,
            workspace,
            WorkspacePlan(plan_id=plan_id, activated_at=plan.activated_at),
        )
    return workspace


def make_trial_workspace(db, *, trial_end: datetime, name: str | None = None):
    workspace = make_workspace(db, name=name)
    plan = load_workspace_plan(workspace)
    save_workspace_plan(
        db,
        workspace,
        WorkspacePlan(
            plan_id="starter",
            activated_at=plan.activated_at,
            is_trial=True,
            trial_end=trial_end,
        ),
    )
    return workspace


def make_clients(db, *, workspace, count: int):
    return [
        create_client(db, workspace.id, name=f"Client {index}")
        for index in range(count)
    ]
