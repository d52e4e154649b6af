from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from aurelo.billing.catalog import LimitKey
from aurelo.core.db import get_db
from aurelo.crud.clients import archive_client, count_active_clients, create_client, get_client, list_clients
from aurelo.entitlements.enforcement import assert_limit
from aurelo.schemas.clients import ClientCreate, ClientRead
from aurelo.workspaces.context import RequestContext
from aurelo.workspaces.dependencies import require_workspace


router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=list[ClientRead])
def list_clients_endpoint(
    include_archived: bool = True,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_workspace),
):
    return list_clients(db, ctx.workspace_id, include_archived=include_archived)


@router.post("", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def create_client_endpoint(
    payload: ClientCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_workspace),
):
    active = count_active_clients(db, ctx.workspace_id)
    assert_limit(ctx.entitlements, LimitKey.ACTIVE_CLIENTS, active)
    return create_client(db, ctx.workspace_id, name=payload.name, email=payload.email)


@router.post("/{client_id}/archive", response_model=ClientRead)
def archive_client_endpoint(
    client_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_workspace),
):
    client = get_client(db, ctx.workspace_id, client_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return archive_client(db, client)
