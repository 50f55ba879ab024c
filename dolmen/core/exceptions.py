"""
Exceptions raised by the admin services.

Routers translate these into HTTP responses; the admin panel controller
turns them into alerts.
"""
from typing import Dict, Optional


class DolmenError(Exception):
    """Base exception for the admin services."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AdminRequiredError(DolmenError):
    """The caller has no active admin session."""

    def __init__(self, message: str = "You must be signed in as an admin to do this."):
        super().__init__(message)


class RecordValidationError(DolmenError):
    """A candidate record failed field validation. Carries every field error."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        first = next(iter(self.errors.values()), "Invalid record")
        super().__init__(first)


class BackendError(DolmenError):
    """A backend call failed; message is already classified for display."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class StoreError(DolmenError):
    """Raw failure from a gateway, before classification."""

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message or "")
        self.code = code


class IdentityProviderError(DolmenError):
    """Identity provider failure other than "no active session"."""
