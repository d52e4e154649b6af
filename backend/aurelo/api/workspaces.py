from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from aurelo.core.db import get_db
from aurelo.crud.workspaces import create_workspace, get_workspace_by_id
from aurelo.schemas.workspaces import WorkspaceCreate, WorkspaceRead


router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.post("", response_model=WorkspaceRead, status_code=status.HTTP_201_CREATED)
def create_workspace_endpoint(payload: WorkspaceCreate, db: Session = Depends(get_db)):
    return create_workspace(
        db,
        name=payload.name,
        owner_id=payload.owner_id,
        owner_email=payload.owner_email,
    )


@router.get("/{workspace_id}", response_model=WorkspaceRead)
def read_workspace(workspace_id: int, db: Session = Depends(get_db)):
    workspace = get_workspace_by_id(db, workspace_id)
    if not workspace:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workspace not found")
    return workspace
