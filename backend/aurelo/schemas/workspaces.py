from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class WorkspaceCreate(BaseModel):
    name: str
    owner_id: str
    owner_email: Optional[str] = None


class WorkspaceRead(BaseModel):
    id: int
    name: str
    owner_id: str
    owner_email: Optional[str] = None
    plan_id: str
    plan_activated_at: datetime
    plan_period_end: Optional[datetime] = None
    is_trial: bool
    trial_end: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
