"""
FastAPI dependencies.

Supabase clients live on `app.state` (created in the lifespan); the
gateways built here are what tests override.
"""
import logging
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from dolmen.core.config import settings
from dolmen.core.exceptions import IdentityProviderError
from dolmen.schemas.auth import AdminStatus
from dolmen.services.gateways import (
    AdminDirectory,
    IdentityProvider,
    ImageStorage,
    RecordStore,
    SupabaseAdminDirectory,
    SupabaseIdentityProvider,
    SupabaseImageStorage,
    SupabaseRecordStore,
    SupabaseThemeStore,
    ThemeStore,
)
from dolmen.services.session import SessionResolver
from dolmen.services.theme import ThemeState

logger = logging.getLogger(__name__)


def _client(request: Request, name: str):
    client = getattr(request.app.state, name, None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Supabase not configured",
        )
    return client


def get_public_client(request: Request):
    return _client(request, "supabase")


def get_admin_client(request: Request):
    return _client(request, "supabase_admin")


def get_theme_state(request: Request) -> ThemeState:
    return request.app.state.theme_state


def get_access_token(authorization: Annotated[Optional[str], Header()] = None) -> Optional[str]:
    """Bearer token from the Authorization header, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_identity_provider(
    access_token: Annotated[Optional[str], Depends(get_access_token)],
    client=Depends(get_public_client),
) -> IdentityProvider:
    return SupabaseIdentityProvider(client, access_token)


def get_admin_directory(client=Depends(get_admin_client)) -> AdminDirectory:
    return SupabaseAdminDirectory(client)


class RecordStoreDependency:
    """Store for one table, on the anon client or the service-role client."""

    def __init__(self, table: str, privileged: bool):
        self.table = table
        self.privileged = privileged

    def __call__(self, request: Request) -> RecordStore:
        client = get_admin_client(request) if self.privileged else get_public_client(request)
        return SupabaseRecordStore(client, self.table)


public_artist_store = RecordStoreDependency("artists", privileged=False)
public_release_store = RecordStoreDependency("releases", privileged=False)
admin_artist_store = RecordStoreDependency("artists", privileged=True)
admin_release_store = RecordStoreDependency("releases", privileged=True)


def get_public_theme_store(client=Depends(get_public_client)) -> ThemeStore:
    return SupabaseThemeStore(client)


def get_admin_theme_store(client=Depends(get_admin_client)) -> ThemeStore:
    return SupabaseThemeStore(client)


def get_image_storage(client=Depends(get_admin_client)) -> ImageStorage:
    return SupabaseImageStorage(client, settings.ARTIST_IMAGES_BUCKET)


async def get_session(
    identity_provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
    directory: Annotated[AdminDirectory, Depends(get_admin_directory)],
) -> SessionResolver:
    """Resolve the caller's admin status without enforcing it."""
    session = SessionResolver(
        identity_provider,
        directory,
        timeout=settings.ADMIN_RESOLUTION_TIMEOUT,
    )
    try:
        await session.resolve()
    except IdentityProviderError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Authentication error: {exc.message}",
        )
    return session


async def require_admin(
    session: Annotated[SessionResolver, Depends(get_session)],
) -> SessionResolver:
    """Only let resolved admins through."""
    if session.status is AdminStatus.UNAUTHENTICATED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not session.is_admin:
        logger.info(f"Denied admin access to {session.identity.email if session.identity else 'unknown'}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin privileges required.",
        )
    return session
