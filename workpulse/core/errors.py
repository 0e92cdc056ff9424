"""Exceptions raised by the authorization core.

Ordinary authorization outcomes are ``Decision`` values, never exceptions.
The classes here signal corrupt input data.
"""

from __future__ import annotations


class WorkPulseError(Exception):
    """Base exception for WorkPulse."""

    def __init__(self, message: str = "An error occurred") -> None:
        self.message = message
        super().__init__(self.message)


class StructuralError(WorkPulseError):
    """Raised when the reporting graph contains a cycle or a walk exceeds its bound."""

    def __init__(self, message: str, path: tuple[int, ...] = ()) -> None:
        self.path = path
        super().__init__(message)


class RoleTableError(WorkPulseError):
    """Raised when a role configuration payload cannot be loaded."""
