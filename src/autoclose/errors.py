"""Common error types used across the auto-close engine."""

from __future__ import annotations


class AutoCloseError(RuntimeError):
    """Base class for engine failures that are caught at component boundaries."""


class ProcessResolutionError(AutoCloseError):
    """Raised when the process table cannot be inspected at all."""


class EntityStoreError(AutoCloseError):
    """Raised when the running-entity store rejects or fails an operation."""

    def __init__(self, operation: str, entity_id: str | None = None, *, reason: str = "") -> None:
        message = f"Entity store operation {operation!r} failed"
        if entity_id:
            message += f" for {entity_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.operation = operation
        self.entity_id = entity_id


__all__ = ["AutoCloseError", "EntityStoreError", "ProcessResolutionError"]
