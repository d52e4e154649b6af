"""
Constants for workspace selection.
"""

# Header carrying the active workspace selection from the frontend.
WORKSPACE_HEADER = "X-Workspace-ID"

# Largest id a signed 64-bit primary key can hold.
MAX_WORKSPACE_ID = 2**63 - 1


def parse_workspace_id(value) -> int | None:
    """Return the workspace id carried by a header or metadata value, if it can be one."""
    text = str(value).strip() if value is not None else ""
    if not (text.isascii() and text.isdigit()):
        return None
    workspace_id = int(text)
    if workspace_id > MAX_WORKSPACE_ID:
        return None
    return workspace_id
