"""
FastAPI dependency helpers that bind entitlements to the selected workspace.

Each request builds its own WorkspacePlanState from the persisted row, so no
plan state is shared between requests or sessions.
"""

from typing import Optional
from uuid import uuid4

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from aurelo.core.config import settings
from aurelo.core.db import get_db
from aurelo.crud.workspaces import get_workspace_by_id, load_workspace_plan, save_workspace_plan
from aurelo.entitlements.context import EntitlementContext
from aurelo.entitlements.state import WorkspacePlanState
from aurelo.workspaces.constants import WORKSPACE_HEADER, parse_workspace_id
from aurelo.workspaces.context import RequestContext
from aurelo.workspaces.errors import WorkspaceNotFound, WorkspaceNotSelected


def _resolve_workspace_hint(request: Request) -> Optional[str]:
    header_name = settings.WORKSPACE_HEADER_NAME or WORKSPACE_HEADER
    value = request.headers.get(header_name)
    return value.strip() if value and value.strip() else None


def build_request_context(db: Session, request_id: str, workspace_hint: Optional[str]) -> RequestContext:
    if workspace_hint is None:
        if settings.REQUIRE_WORKSPACE_HEADER:
            raise WorkspaceNotSelected("Workspace must be provided via header")
        return RequestContext(
            request_id=request_id,
            workspace_id=None,
            workspace=None,
            entitlements=EntitlementContext.unbound(),
        )
    workspace_id = parse_workspace_id(workspace_hint)
    workspace = get_workspace_by_id(db, workspace_id) if workspace_id is not None else None
    if workspace is None:
        raise WorkspaceNotFound(workspace_hint)
    state = WorkspacePlanState(load_workspace_plan(workspace))
    return RequestContext(
        request_id=request_id,
        workspace_id=workspace.id,
        workspace=workspace,
        entitlements=EntitlementContext.bound(state),
    )


def get_request_context(
    request: Request,
    db: Session = Depends(get_db),
) -> RequestContext:
    request_id = getattr(request.state, "request_id", None) or str(uuid4())
    try:
        return build_request_context(db, request_id, _resolve_workspace_hint(request))
    except WorkspaceNotSelected as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except WorkspaceNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workspace not found") from exc


def require_workspace(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    if ctx.workspace is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Workspace must be provided via header",
        )
    return ctx


def persist_entitlements(db: Session, ctx: RequestContext) -> None:
    """Write the context's plan record back to its workspace row."""
    if ctx.workspace is None:
        return
    save_workspace_plan(db, ctx.workspace, ctx.entitlements.plan)
