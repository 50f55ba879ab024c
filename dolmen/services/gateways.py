"""
Supabase gateways.

Thin async wrappers around the Supabase client for the four external
collaborators of the admin services: identity provider, admin directory,
table store and image storage. Every failure leaves here as a StoreError
or IdentityProviderError so the services never see Supabase types.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, AuthError, AuthSessionMissingError, StorageException

from dolmen.core.exceptions import IdentityProviderError, StoreError
from dolmen.schemas.auth import Identity
from dolmen.services.error_classifier import NETWORK_ERROR_MESSAGE

logger = logging.getLogger(__name__)

IdentityListener = Callable[[str, Optional[Identity]], None]

DEFAULT_ORDER = ("order_index", "created_at")


class IdentityProvider(Protocol):
    async def get_current_identity(self) -> Optional[Identity]: ...

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]: ...

    async def sign_in_with_password(self, email: str, password: str) -> Optional[Identity]: ...

    async def sign_up(self, email: str, password: str) -> Optional[Identity]: ...

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> str: ...

    async def sign_out(self) -> None: ...


class AdminDirectory(Protocol):
    async def is_admin(self, email: str) -> bool: ...


class RecordStore(Protocol):
    async def select_all(self, order_by: Sequence[str] = DEFAULT_ORDER) -> List[Dict[str, Any]]: ...

    async def select_where(
        self, column: str, value: Any, order_by: Sequence[str] = DEFAULT_ORDER
    ) -> List[Dict[str, Any]]: ...

    async def insert(self, record: Dict[str, Any]) -> None: ...

    async def update(self, record_id: str, record: Dict[str, Any]) -> None: ...

    async def delete(self, record_id: str) -> None: ...


class ThemeStore(Protocol):
    async def select_single(self, record_id: str) -> Dict[str, Any]: ...

    async def update(self, record_id: str, record: Dict[str, Any]) -> None: ...


class ImageStorage(Protocol):
    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> None: ...

    async def get_public_url(self, path: str) -> str: ...


async def _execute(query) -> Any:
    """Run a PostgREST query, translating failures to StoreError."""
    try:
        response = await query.execute()
    except APIError as exc:
        raise StoreError(exc.message, exc.code) from exc
    except httpx.HTTPError as exc:
        logger.error(f"Network error talking to Supabase: {exc}")
        raise StoreError(NETWORK_ERROR_MESSAGE) from exc
    return response.data


def _identity_from_response(response: Any) -> Optional[Identity]:
    user = getattr(response, "user", None) if response is not None else None
    return Identity.from_user(user) if user is not None else None


class SupabaseIdentityProvider:
    """
    Identity provider backed by Supabase Auth.

    When `access_token` is given (server side, from a bearer header) the
    identity is read from that token; otherwise the client's own session
    is used.
    """

    def __init__(self, client: AsyncClient, access_token: Optional[str] = None):
        self._client = client
        self._access_token = access_token

    async def get_current_identity(self) -> Optional[Identity]:
        try:
            response = await self._client.auth.get_user(self._access_token)
        except AuthSessionMissingError:
            return None
        except AuthError as exc:
            raise IdentityProviderError(exc.message) from exc
        except httpx.HTTPError as exc:
            raise IdentityProviderError(NETWORK_ERROR_MESSAGE) from exc
        return _identity_from_response(response)

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]:
        def _listener(event, session) -> None:
            user = getattr(session, "user", None) if session is not None else None
            identity = Identity.from_user(user) if user is not None else None
            callback(str(getattr(event, "value", event)), identity)

        subscription = self._client.auth.on_auth_state_change(_listener)
        return subscription.unsubscribe

    async def sign_in_with_password(self, email: str, password: str) -> Optional[Identity]:
        try:
            response = await self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise IdentityProviderError(exc.message) from exc
        except httpx.HTTPError as exc:
            raise IdentityProviderError(NETWORK_ERROR_MESSAGE) from exc
        return _identity_from_response(response)

    async def sign_up(self, email: str, password: str) -> Optional[Identity]:
        try:
            response = await self._client.auth.sign_up({"email": email, "password": password})
        except AuthError as exc:
            raise IdentityProviderError(exc.message) from exc
        except httpx.HTTPError as exc:
            raise IdentityProviderError(NETWORK_ERROR_MESSAGE) from exc
        return _identity_from_response(response)

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> str:
        try:
            response = await self._client.auth.sign_in_with_oauth(
                {"provider": provider, "options": {"redirect_to": redirect_to}}
            )
        except AuthError as exc:
            raise IdentityProviderError(exc.message) from exc
        except httpx.HTTPError as exc:
            raise IdentityProviderError(NETWORK_ERROR_MESSAGE) from exc
        return response.url

    async def sign_out(self) -> None:
        try:
            await self._client.auth.sign_out()
        except AuthError as exc:
            raise IdentityProviderError(exc.message) from exc
        except httpx.HTTPError as exc:
            raise IdentityProviderError(NETWORK_ERROR_MESSAGE) from exc


class SupabaseAdminDirectory:
    """Admin membership lookup in the `admin_users` table."""

    def __init__(self, client: AsyncClient, table: str = "admin_users"):
        self._client = client
        self._table = table

    async def is_admin(self, email: str) -> bool:
        rows = await _execute(
            self._client.table(self._table).select("id").eq("email", email).limit(1)
        )
        return bool(rows)


class SupabaseRecordStore:
    """CRUD over one Supabase table keyed by `id`."""

    def __init__(self, client: AsyncClient, table: str):
        self._client = client
        self.table = table

    def _ordered(self, query, order_by: Sequence[str]):
        for column in order_by:
            query = query.order(column)
        return query

    async def select_all(self, order_by: Sequence[str] = DEFAULT_ORDER) -> List[Dict[str, Any]]:
        query = self._client.table(self.table).select("*")
        return await _execute(self._ordered(query, order_by)) or []

    async def select_where(
        self, column: str, value: Any, order_by: Sequence[str] = DEFAULT_ORDER
    ) -> List[Dict[str, Any]]:
        query = self._client.table(self.table).select("*").eq(column, value)
        return await _execute(self._ordered(query, order_by)) or []

    async def insert(self, record: Dict[str, Any]) -> None:
        await _execute(self._client.table(self.table).insert(record))

    async def update(self, record_id: str, record: Dict[str, Any]) -> None:
        await _execute(self._client.table(self.table).update(record).eq("id", record_id))

    async def delete(self, record_id: str) -> None:
        await _execute(self._client.table(self.table).delete().eq("id", record_id))


class SupabaseThemeStore:
    """The `theme_settings` singleton. Update only."""

    def __init__(self, client: AsyncClient, table: str = "theme_settings"):
        self._client = client
        self._table = table

    async def select_single(self, record_id: str) -> Dict[str, Any]:
        return await _execute(
            self._client.table(self._table).select("*").eq("id", record_id).single()
        )

    async def update(self, record_id: str, record: Dict[str, Any]) -> None:
        await _execute(self._client.table(self._table).update(record).eq("id", record_id))


class SupabaseImageStorage:
    """Public bucket holding uploaded artist images."""

    def __init__(self, client: AsyncClient, bucket: str):
        self._client = client
        self.bucket = bucket

    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> None:
        options = {"content-type": content_type} if content_type else {}
        try:
            await self._client.storage.from_(self.bucket).upload(path, content, options)
        except StorageException as exc:
            payload = exc.args[0] if exc.args and isinstance(exc.args[0], dict) else {}
            raise StoreError(
                payload.get("message") or str(exc),
                str(payload["error"]) if payload.get("error") else None,
            ) from exc
        except httpx.HTTPError as exc:
            raise StoreError(NETWORK_ERROR_MESSAGE) from exc

    async def get_public_url(self, path: str) -> str:
        url = self._client.storage.from_(self.bucket).get_public_url(path)
        # async in the async client, plain str in older releases
        if inspect.isawaitable(url):
            url = await url
        return url
