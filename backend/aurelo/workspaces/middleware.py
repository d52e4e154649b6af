"""
Middleware for request-scoped workspace concerns.
"""

import logging
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from aurelo.core.config import settings
from aurelo.workspaces.constants import WORKSPACE_HEADER

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Attaches a request_id and the raw workspace selection to request.state.
    """

    async def dispatch(self, request, call_next):
        request_id = (
            getattr(request.state, "request_id", None)
            or request.headers.get("X-Request-ID")
            or str(uuid4())
        )
        request.state.request_id = request_id

        header_name = settings.WORKSPACE_HEADER_NAME or WORKSPACE_HEADER
        request.state.workspace_id = request.headers.get(header_name)

        logger.debug(
            "request.start",
            extra={"request_id": request_id, "path": request.url.path},
        )
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response
