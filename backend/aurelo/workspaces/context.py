"""
Request-scoped workspace context.
"""

from dataclasses import dataclass
from typing import Optional

from aurelo.entitlements.context import EntitlementContext
from aurelo.models.workspaces import Workspace


@dataclass
class RequestContext:
    """
    Carries the selected workspace and its entitlement handle for one request.
    """

    request_id: str
    workspace_id: Optional[int]
    workspace: Optional[Workspace]
    entitlements: EntitlementContext
