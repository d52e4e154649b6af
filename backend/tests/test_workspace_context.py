import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from aurelo.billing.catalog import PlanTier
from aurelo.core.config import settings
from aurelo.core.db import Base
from aurelo.crud.workspaces import get_workspace_by_id
from aurelo.workspaces import WorkspaceNotFound, WorkspaceNotSelected
from aurelo.workspaces.dependencies import build_request_context, persist_entitlements
from factories import make_workspace
import aurelo.models  # noqa: F401


@pytest.fixture
def db_session(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path}/context.db",
        connect_args={"check_same_thread": False},
        future=True,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    with TestingSessionLocal() as session:
        yield session
    engine.dispose()


def test_missing_workspace_gives_unbound_context(db_session, monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_WORKSPACE_HEADER", False)
    ctx = build_request_context(db_session, "req-1", None)
    assert ctx.workspace is None
    assert ctx.entitlements.is_bound is False
    assert ctx.entitlements.plan_id is PlanTier.STARTER
    persist_entitlements(db_session, ctx)


def test_missing_workspace_rejected_when_required(db_session, monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_WORKSPACE_HEADER", True)
    with pytest.raises(WorkspaceNotSelected):
        build_request_context(db_session, "req-2", None)


@pytest.mark.parametrize("hint", ["404", "acme", "-1", "9" * 23, "\u00b2"])
def test_unknown_workspace_hint_raises(db_session, hint):
    with pytest.raises(WorkspaceNotFound):
        build_request_context(db_session, "req-3", hint)


def test_bound_context_mutations_persist_to_row(db_session):
    workspace = make_workspace(db_session)
    ctx = build_request_context(db_session, "req-4", str(workspace.id))
    assert ctx.workspace_id == workspace.id
    assert ctx.entitlements.is_bound is True

    ctx.entitlements.start_trial()
    persist_entitlements(db_session, ctx)

    stored = get_workspace_by_id(db_session, workspace.id)
    assert stored.is_trial is True
    assert stored.trial_end == ctx.entitlements.plan.trial_end


def test_each_request_gets_its_own_state(db_session):
    workspace = make_workspace(db_session)
    first = build_request_context(db_session, "req-5", str(workspace.id))
    second = build_request_context(db_session, "req-6", str(workspace.id))
    first.entitlements.set_plan_id("studio")
    assert second.entitlements.plan_id is PlanTier.STARTER
