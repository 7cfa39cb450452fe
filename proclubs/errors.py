"""
Errors shared across services and the API layer.
Service-specific errors live next to the service that raises them.
"""
from __future__ import annotations


class NotFoundError(LookupError):
    """A referenced record does not exist."""

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class PermissionDeniedError(PermissionError):
    """The caller may not perform this action."""
