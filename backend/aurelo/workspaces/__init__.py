"Workspace selection: request context, middleware and entitlement binding."

from .constants import WORKSPACE_HEADER  # noqa: F401
from .context import RequestContext  # noqa: F401
from .errors import WorkspaceNotFound, WorkspaceNotSelected  # noqa: F401
from .middleware import RequestContextMiddleware  # noqa: F401
