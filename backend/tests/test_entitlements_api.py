import os
from datetime import timedelta
from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SKIP_MIGRATIONS", "1")

from aurelo.main import app
import aurelo.core.db as db_module
from aurelo.core.config import settings
from aurelo.core.time import utcnow
from aurelo.crud.workspaces import get_workspace_by_id


client = TestClient(app)


def _setup_db(db_url: str):
    engine = create_engine(
        db_url,
        connect_args={"check_same_thread": False},
        future=True,
    )
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    db_module.engine = engine
    db_module.SessionLocal = SessionLocal
    db_module.Base.metadata.create_all(bind=engine)
    return SessionLocal


def _create_workspace(name: str = "Acme Studio") -> int:
    resp = client.post(
        "/api/v1/workspaces",
        json={"name": name, "owner_id": f"user_{uuid4().hex[:8]}", "owner_email": "owner@acme.test"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["plan_id"] == "starter"
    return body["id"]


def _headers(workspace_id: int) -> dict:
    return {"X-Workspace-ID": str(workspace_id)}


def test_plans_endpoint_lists_catalog(tmp_path):
    _setup_db(f"sqlite:///{tmp_path}/plans.db")
    resp = client.get("/api/v1/plans")
    assert resp.status_code == 200
    plans = resp.json()
    assert [plan["plan_key"] for plan in plans] == ["starter", "pro", "studio"]
    starter = plans[0]
    assert starter["price_monthly"] == 0
    assert starter["limits"]["activeClients"] == 5
    assert starter["formatted_limits"]["dataRetentionDays"] == "90"
    assert plans[2]["formatted_limits"]["seats"] == "unlimited"
    assert {item["key"] for item in plans[1]["unlocks"]} >= {"fullInsights", "clientInvoicing"}
    assert plans[2]["support_tier"] == "Dedicated support"


def test_entitlements_without_workspace_are_starter_and_read_only(tmp_path):
    _setup_db(f"sqlite:///{tmp_path}/unbound.db")
    resp = client.get("/api/v1/entitlements")
    assert resp.status_code == 200
    body = resp.json()
    assert body["bound"] is False
    assert body["plan_id"] == "starter"
    assert body["can_start_trial"] is False
    assert body["features"]["clientInvoicing"] is False

    resp = client.post("/api/v1/entitlements/trial")
    assert resp.status_code == 400
    assert resp.json()["code"] == "workspace_not_bound"
    assert resp.headers["X-Error-Code"] == "workspace_not_bound"


def test_unknown_workspace_returns_404(tmp_path):
    _setup_db(f"sqlite:///{tmp_path}/missing.db")
    assert client.get("/api/v1/entitlements", headers=_headers(999)).status_code == 404
    assert client.get("/api/v1/entitlements", headers={"X-Workspace-ID": "acme"}).status_code == 404
    assert client.get("/api/v1/workspaces/999").status_code == 404


def test_trial_flow_is_persisted_and_single_use(tmp_path):
    SessionLocal = _setup_db(f"sqlite:///{tmp_path}/trial.db")
    workspace_id = _create_workspace()

    before = client.get("/api/v1/entitlements", headers=_headers(workspace_id)).json()
    assert before["bound"] is True
    assert before["can_start_trial"] is True
    assert before["features"]["fullInsights"] is False

    resp = client.post("/api/v1/entitlements/trial", headers=_headers(workspace_id))
    assert resp.status_code == 200
    body = resp.json()
    assert body["plan_id"] == "starter"
    assert body["effective_plan_id"] == "pro"
    assert body["is_trial"] is True
    assert body["trial_status"] == "active"
    assert body["trial_days_remaining"] == 7
    assert body["features"]["fullInsights"] is True
    assert body["limits"]["activeClients"] is None

    with SessionLocal() as db:
        workspace = get_workspace_by_id(db, workspace_id)
        assert workspace.is_trial is True
        assert workspace.trial_end is not None
        assert workspace.plan_id == "starter"

    again = client.post("/api/v1/entitlements/trial", headers=_headers(workspace_id))
    assert again.status_code == 409
    assert again.json()["code"] == "trial_already_consumed"

    reread = client.get("/api/v1/entitlements", headers=_headers(workspace_id)).json()
    assert reread["effective_plan_id"] == "pro"
    assert reread["can_start_trial"] is False


def test_paid_workspace_cannot_start_trial(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "ALLOW_PLAN_OVERRIDE", True)
    _setup_db(f"sqlite:///{tmp_path}/paid_trial.db")
    workspace_id = _create_workspace()
    client.patch("/api/v1/entitlements/plan-id", headers=_headers(workspace_id), json={"plan_id": "pro"})
    resp = client.post("/api/v1/entitlements/trial", headers=_headers(workspace_id))
    assert resp.status_code == 409
    assert resp.json()["code"] == "trial_requires_starter"


def test_replace_plan_and_change_plan_id(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "ALLOW_PLAN_OVERRIDE", True)
    _setup_db(f"sqlite:///{tmp_path}/plan_update.db")
    workspace_id = _create_workspace()

    resp = client.put(
        "/api/v1/entitlements/plan",
        headers=_headers(workspace_id),
        json={
            "plan_id": "studio",
            "activated_at": "2026-03-01T00:00:00",
            "period_end": "2026-04-01T00:00:00",
            "stripe_subscription_id": "sub_123",
            "stripe_customer_id": "cus_123",
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["plan_id"] == "studio"
    assert body["plan_name"] == "Studio"
    assert body["period_end"].startswith("2026-04-01")
    assert body["features"]["webhooks"] is True

    resp = client.patch(
        "/api/v1/entitlements/plan-id",
        headers=_headers(workspace_id),
        json={"plan_id": "pro"},
    )
    assert resp.status_code == 200
    assert resp.json()["plan_id"] == "pro"
    assert resp.json()["period_end"].startswith("2026-04-01")

    workspace = client.get(f"/api/v1/workspaces/{workspace_id}").json()
    assert workspace["plan_id"] == "pro"

    bad = client.patch(
        "/api/v1/entitlements/plan-id",
        headers=_headers(workspace_id),
        json={"plan_id": "platinum"},
    )
    assert bad.status_code == 422


def test_plan_overrides_are_rejected_by_default(tmp_path):
    _setup_db(f"sqlite:///{tmp_path}/override_off.db")
    workspace_id = _create_workspace()
    assert settings.ALLOW_PLAN_OVERRIDE is False

    resp = client.put(
        "/api/v1/entitlements/plan",
        headers=_headers(workspace_id),
        json={"plan_id": "studio"},
    )
    assert resp.status_code == 403
    resp = client.patch(
        "/api/v1/entitlements/plan-id",
        headers=_headers(workspace_id),
        json={"plan_id": "studio"},
    )
    assert resp.status_code == 403

    workspace = client.get(f"/api/v1/workspaces/{workspace_id}").json()
    assert workspace["plan_id"] == "starter"


def test_lapsed_trial_cannot_be_reopened_through_the_api(tmp_path):
    SessionLocal = _setup_db(f"sqlite:///{tmp_path}/reopen_trial.db")
    workspace_id = _create_workspace()
    with SessionLocal() as db:
        workspace = get_workspace_by_id(db, workspace_id)
        workspace.is_trial = True
        workspace.trial_end = utcnow() - timedelta(days=1)
        db.commit()

    assert client.post("/api/v1/entitlements/trial", headers=_headers(workspace_id)).status_code == 409
    reset = client.put(
        "/api/v1/entitlements/plan",
        headers=_headers(workspace_id),
        json={"plan_id": "starter"},
    )
    assert reset.status_code == 403
    again = client.post("/api/v1/entitlements/trial", headers=_headers(workspace_id))
    assert again.status_code == 409
    assert again.json()["code"] == "trial_already_consumed"


def test_oversized_workspace_header_is_not_found(tmp_path):
    _setup_db(f"sqlite:///{tmp_path}/oversized.db")
    resp = client.get("/api/v1/entitlements", headers={"X-Workspace-ID": "9" * 23})
    assert resp.status_code == 404


def test_required_plan_and_limit_checks(tmp_path):
    _setup_db(f"sqlite:///{tmp_path}/checks.db")
    workspace_id = _create_workspace()

    resp = client.get("/api/v1/entitlements/required-plan/batchInvoicing", headers=_headers(workspace_id))
    assert resp.status_code == 200
    assert resp.json() == {"feature": "batchInvoicing", "required_plan": "studio", "enabled": False}

    resp = client.get(
        "/api/v1/entitlements/limits/activeClients",
        headers=_headers(workspace_id),
        params={"count": 5},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["limit"] == 5
    assert body["formatted_limit"] == "5"
    assert body["at_limit"] is True
    assert body["would_exceed"] is True
    assert body["over_by"] == 0
    assert body["upgrade_plan"] == "pro"

    resp = client.get("/api/v1/entitlements/limits/storageGb", headers=_headers(workspace_id))
    assert resp.status_code == 404
