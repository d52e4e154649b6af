import os
from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SKIP_MIGRATIONS", "1")

from aurelo.main import app
import aurelo.core.db as db_module
from aurelo.core.time import utcnow
from aurelo.crud.invoices import create_invoice
from factories import make_clients, make_trial_workspace, make_workspace


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


def _seed(SessionLocal, plan_id: str = "starter"):
    with SessionLocal() as db:
        workspace = make_workspace(db, plan_id=plan_id)
        client_id = make_clients(db, workspace=workspace, count=1)[0].id
        return workspace.id, client_id


def _invoice_payload(client_id: int, rate: str = "120.00") -> dict:
    return {
        "client_id": client_id,
        "line_items": [
            {"description": "Design sprint", "quantity": "10", "rate": rate},
            {"description": "QA", "quantity": "2", "rate": "60"},
        ],
        "due_date": "2026-05-01T00:00:00",
        "tax_rate": "0.1",
    }


def _headers(workspace_id: int) -> dict:
    return {"X-Workspace-ID": str(workspace_id)}


def test_starter_cannot_create_invoices(tmp_path):
    workspace_id, client_id = _seed(_setup_db(f"sqlite:///{tmp_path}/starter_invoices.db"))
    resp = client.post("/api/v1/invoices", headers=_headers(workspace_id), json=_invoice_payload(client_id))
    assert resp.status_code == 403
    assert resp.headers["X-Error-Code"] == "feature_not_enabled"
    assert resp.json()["upgrade_plan_key"] == "pro"


def test_pro_workspace_creates_numbered_invoice(tmp_path):
    workspace_id, client_id = _seed(_setup_db(f"sqlite:///{tmp_path}/pro_invoices.db"), "pro")
    resp = client.post("/api/v1/invoices", headers=_headers(workspace_id), json=_invoice_payload(client_id))
    assert resp.status_code == 201
    body = resp.json()
    assert body["number"] == "INV-1001"
    assert body["status"] == "draft"
    assert float(body["subtotal"]) == 1320.0
    assert float(body["tax_amount"]) == 132.0
    assert float(body["total"]) == 1452.0
    assert [line["amount"] for line in body["line_items"]] == [1200.0, 120.0]

    listed = client.get("/api/v1/invoices", headers=_headers(workspace_id)).json()
    assert [invoice["id"] for invoice in listed] == [body["id"]]


def test_active_trial_unlocks_invoicing(tmp_path):
    SessionLocal = _setup_db(f"sqlite:///{tmp_path}/trial_invoices.db")
    with SessionLocal() as db:
        workspace = make_trial_workspace(db, trial_end=utcnow() + timedelta(days=3))
        workspace_id = workspace.id
        client_id = make_clients(db, workspace=workspace, count=1)[0].id

    resp = client.post("/api/v1/invoices", headers=_headers(workspace_id), json=_invoice_payload(client_id))
    assert resp.status_code == 201


def test_lapsed_trial_blocks_invoicing(tmp_path):
    SessionLocal = _setup_db(f"sqlite:///{tmp_path}/lapsed_invoices.db")
    with SessionLocal() as db:
        workspace = make_trial_workspace(db, trial_end=utcnow() - timedelta(days=1))
        workspace_id = workspace.id
        client_id = make_clients(db, workspace=workspace, count=1)[0].id

    resp = client.post("/api/v1/invoices", headers=_headers(workspace_id), json=_invoice_payload(client_id))
    assert resp.status_code == 403


def test_batch_invoicing_requires_studio(tmp_path):
    workspace_id, client_id = _seed(_setup_db(f"sqlite:///{tmp_path}/batch_pro.db"), "pro")
    payload = {"invoices": [_invoice_payload(client_id), _invoice_payload(client_id, rate="90")]}
    resp = client.post("/api/v1/invoices/batch", headers=_headers(workspace_id), json=payload)
    assert resp.status_code == 403
    assert resp.json()["upgrade_plan_key"] == "studio"


def test_studio_batch_creates_all_invoices(tmp_path):
    workspace_id, client_id = _seed(_setup_db(f"sqlite:///{tmp_path}/batch_studio.db"), "studio")
    payload = {"invoices": [_invoice_payload(client_id), _invoice_payload(client_id, rate="90")]}
    resp = client.post("/api/v1/invoices/batch", headers=_headers(workspace_id), json=payload)
    assert resp.status_code == 201
    assert [invoice["number"] for invoice in resp.json()] == ["INV-1001", "INV-1002"]


def test_invoice_for_unknown_client_is_404(tmp_path):
    workspace_id, _ = _seed(_setup_db(f"sqlite:///{tmp_path}/unknown_client.db"), "pro")
    resp = client.post("/api/v1/invoices", headers=_headers(workspace_id), json=_invoice_payload(9999))
    assert resp.status_code == 404


def test_update_status_and_delete(tmp_path):
    workspace_id, client_id = _seed(_setup_db(f"sqlite:///{tmp_path}/update_invoices.db"), "pro")
    invoice_id = client.post(
        "/api/v1/invoices", headers=_headers(workspace_id), json=_invoice_payload(client_id)
    ).json()["id"]

    resp = client.patch(
        f"/api/v1/invoices/{invoice_id}",
        headers=_headers(workspace_id),
        json={"status": "paid"},
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "paid"
    assert resp.json()["paid_date"] is not None

    paid = client.get("/api/v1/invoices", headers=_headers(workspace_id), params={"status_filter": "paid"})
    assert len(paid.json()) == 1

    resp = client.delete(f"/api/v1/invoices/{invoice_id}", headers=_headers(workspace_id))
    assert resp.status_code == 204
    assert client.patch(
        f"/api/v1/invoices/{invoice_id}",
        headers=_headers(workspace_id),
        json={"status": "sent"},
    ).status_code == 404


def test_starter_invoice_history_is_limited_to_retention_window(tmp_path):
    SessionLocal = _setup_db(f"sqlite:///{tmp_path}/retention_invoices.db")
    now = utcnow()
    with SessionLocal() as db:
        workspace = make_workspace(db)
        workspace_id = workspace.id
        client_id = make_clients(db, workspace=workspace, count=1)[0].id
        for days_ago in (200, 10):
            create_invoice(
                db,
                workspace_id,
                client_id=client_id,
                line_items=[{"description": f"{days_ago} days ago", "quantity": 1, "rate": 100}],
                due_date=now,
                issued_date=now - timedelta(days=days_ago),
            )

    resp = client.get(
        "/api/v1/invoices",
        headers=_headers(workspace_id),
        params={"issued_from": (now - timedelta(days=365)).isoformat()},
    )
    assert resp.status_code == 200
    assert resp.headers["X-History-Limit-Days"] == "90"
    assert resp.headers["X-History-Clamped"] == "true"
    assert "90 days" in resp.headers["X-History-Notice"]
    assert [invoice["line_items"][0]["description"] for invoice in resp.json()] == ["10 days ago"]


def test_window_entirely_before_retention_returns_nothing(tmp_path):
    SessionLocal = _setup_db(f"sqlite:///{tmp_path}/expired_window.db")
    now = utcnow()
    with SessionLocal() as db:
        workspace = make_workspace(db)
        workspace_id = workspace.id
        client_id = make_clients(db, workspace=workspace, count=1)[0].id
        for days_ago in (170, 5):
            create_invoice(
                db,
                workspace_id,
                client_id=client_id,
                line_items=[{"description": f"{days_ago} days ago", "quantity": 1, "rate": 100}],
                due_date=now,
                issued_date=now - timedelta(days=days_ago),
            )

    resp = client.get(
        "/api/v1/invoices",
        headers=_headers(workspace_id),
        params={
            "issued_from": (now - timedelta(days=200)).isoformat(),
            "issued_to": (now - timedelta(days=150)).isoformat(),
        },
    )
    assert resp.status_code == 200
    assert resp.json() == []
    assert resp.headers["X-History-Clamped"] == "true"


def test_paid_plans_see_full_invoice_history(tmp_path):
    SessionLocal = _setup_db(f"sqlite:///{tmp_path}/full_history.db")
    now = utcnow()
    with SessionLocal() as db:
        workspace = make_workspace(db, plan_id="pro")
        workspace_id = workspace.id
        client_id = make_clients(db, workspace=workspace, count=1)[0].id
        create_invoice(
            db,
            workspace_id,
            client_id=client_id,
            line_items=[{"description": "Old work", "quantity": 1, "rate": 100}],
            due_date=now,
            issued_date=now - timedelta(days=400),
        )

    resp = client.get("/api/v1/invoices", headers=_headers(workspace_id))
    assert "X-History-Limit-Days" not in resp.headers
    assert len(resp.json()) == 1
