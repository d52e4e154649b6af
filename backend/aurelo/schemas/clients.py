from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ClientCreate(BaseModel):
    name: str
    email: Optional[str] = None


class ClientRead(BaseModel):
    id: int
    workspace_id: int
    name: str
    email: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
