"""
Custom exceptions for workspace resolution.
"""


class WorkspaceNotSelected(Exception):
    """Raised when a workspace is required but none was provided."""


class WorkspaceNotFound(Exception):
    """Raised when the selected workspace does not exist."""
