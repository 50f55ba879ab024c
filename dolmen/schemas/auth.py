"""Identity and admin session schemas."""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class AdminStatus(str, Enum):
    """Where the current caller stands with respect to the admin panel."""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"  # identity known, checking admin membership
    ADMIN = "authenticated-admin"
    NON_ADMIN = "authenticated-non-admin"


class Identity(BaseModel):
    """Signed-in user as reported by the identity provider."""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    provider: Optional[str] = None

    @classmethod
    def from_user(cls, user: Any) -> "Identity":
        """Build from a Supabase auth User."""
        metadata = getattr(user, "user_metadata", None) or {}
        app_metadata = getattr(user, "app_metadata", None) or {}
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None),
            name=metadata.get("full_name") or metadata.get("name"),
            avatar_url=metadata.get("avatar_url"),
            provider=app_metadata.get("provider"),
        )


class SessionResponse(BaseModel):
    status: AdminStatus
    identity: Optional[Identity] = None
