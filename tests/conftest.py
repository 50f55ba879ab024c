"""In-memory stand-ins for the Supabase gateways."""
import asyncio
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest

from dolmen.core.exceptions import IdentityProviderError, StoreError
from dolmen.schemas.auth import Identity
from dolmen.schemas.catalog import ThemeSettings
from dolmen.services.notifier import CollectingNotifier
from dolmen.services.records import ArtistSynchronizer, ReleaseSynchronizer
from dolmen.services.session import SessionResolver
from dolmen.services.theme import ThemeState, ThemeSynchronizer

THEME_ID = "00000000-0000-0000-0000-000000000001"
ADMIN_EMAIL = "admin@dolmengate.test"


class FakeIdentityProvider:
    def __init__(self, identity: Optional[Identity] = None, error: Exception = None, delay: float = 0):
        self.identity = identity
        self.error = error
        self.delay = delay
        self.listeners = []
        self.passwords: Dict[str, str] = {}

    async def get_current_identity(self) -> Optional[Identity]:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.identity

    def on_identity_change(self, callback):
        self.listeners.append(callback)
        return lambda: self.listeners.remove(callback)

    def emit(self, event: str, identity: Optional[Identity]) -> None:
        self.identity = identity
        for callback in list(self.listeners):
            callback(event, identity)

    async def sign_in_with_password(self, email: str, password: str) -> Optional[Identity]:
        if self.passwords.get(email) != password:
            raise IdentityProviderError("Invalid login credentials")
        self.identity = Identity(id=str(uuid.uuid4()), email=email)
        return self.identity

    async def sign_up(self, email: str, password: str) -> Optional[Identity]:
        self.passwords[email] = password
        return None

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> str:
        return f"https://auth.test/authorize?provider={provider}&redirect_to={redirect_to}"

    async def sign_out(self) -> None:
        self.identity = None


class FakeAdminDirectory:
    def __init__(self, emails=(ADMIN_EMAIL,), error: Exception = None, delay: float = 0):
        self.emails = set(emails)
        self.error = error
        self.delay = delay
        self.lookups: List[str] = []

    async def is_admin(self, email: str) -> bool:
        self.lookups.append(email)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return email in self.emails


class FakeRecordStore:
    """Table keyed by id; reads ordered by order_index then created_at."""

    def __init__(self, rows: List[Dict[str, Any]] = None, table: str = "artists"):
        self.table = table
        self.rows: List[Dict[str, Any]] = []
        self.calls: List[tuple] = []
        self.failures: Dict[str, StoreError] = {}
        self._clock = datetime(2025, 1, 1)
        for row in rows or []:
            self._add(dict(row))

    def _add(self, row: Dict[str, Any]) -> None:
        self._clock += timedelta(seconds=1)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", self._clock.isoformat())
        self.rows.append(row)

    def _check(self, method: str) -> None:
        if method in self.failures:
            raise self.failures[method]

    def _ordered(self, rows):
        return sorted(
            (dict(row) for row in rows),
            key=lambda row: (
                row.get("order_index") is None,
                row.get("order_index") or 0,
                row.get("created_at") or "",
            ),
        )

    async def select_all(self, order_by=("order_index", "created_at")):
        self.calls.append(("select_all",))
        self._check("select_all")
        return self._ordered(self.rows)

    async def select_where(self, column, value, order_by=("order_index", "created_at")):
        self.calls.append(("select_where", column, value))
        self._check("select_where")
        return self._ordered(row for row in self.rows if row.get(column) == value)

    async def insert(self, record):
        self.calls.append(("insert", dict(record)))
        self._check("insert")
        self._add(dict(record))

    async def update(self, record_id, record):
        self.calls.append(("update", record_id, dict(record)))
        self._check("update")
        for row in self.rows:
            if row["id"] == record_id:
                row.update(record)

    async def delete(self, record_id):
        self.calls.append(("delete", record_id))
        self._check("delete")
        self.rows = [row for row in self.rows if row["id"] != record_id]

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)


class FakeThemeStore:
    def __init__(self, row: Dict[str, Any] = None):
        self.row = dict(row) if row is not None else {"id": THEME_ID, **ThemeSettings().model_dump()}
        self.calls: List[tuple] = []
        self.failures: Dict[str, StoreError] = {}

    async def select_single(self, record_id):
        self.calls.append(("select_single", record_id))
        if "select_single" in self.failures:
            raise self.failures["select_single"]
        if record_id != self.row.get("id"):
            raise StoreError("JSON object requested, multiple (or no) rows returned", "PGRST116")
        return dict(self.row)

    async def update(self, record_id, record):
        self.calls.append(("update", record_id, dict(record)))
        if "update" in self.failures:
            raise self.failures["update"]
        if record_id == self.row.get("id"):
            self.row.update(record)


class FakeImageStorage:
    def __init__(self, error: StoreError = None):
        self.error = error
        self.objects: Dict[str, bytes] = {}

    async def upload(self, path, content, content_type=None):
        if self.error is not None:
            raise self.error
        self.objects[path] = content

    async def get_public_url(self, path):
        return f"https://cdn.test/storage/v1/object/public/artist-images/{path}"


def artist_row(name: str, order_index: int, **fields) -> Dict[str, Any]:
    row = {
        "name": name,
        "genre": "Synthwave",
        "bio": None,
        "image_url": "",
        "color": "#3B82F6",
        "featured": True,
        "order_index": order_index,
    }
    row.update(fields)
    return row


def release_row(title: str, order_index: int, **fields) -> Dict[str, Any]:
    row = {
        "title": title,
        "artist_name": "Nova",
        "artwork_url": "https://cdn.test/covers/cover.jpg",
        "year": "2024",
        "color": "#EF4444",
        "featured": True,
        "order_index": order_index,
    }
    row.update(fields)
    return row


@pytest.fixture
def admin_identity():
    return Identity(id="user-1", email=ADMIN_EMAIL, name="Admin")


@pytest.fixture
def fan_identity():
    return Identity(id="user-2", email="fan@dolmengate.test")


@pytest.fixture
def notifier():
    return CollectingNotifier(confirmed=True)


@pytest.fixture
def artist_store():
    return FakeRecordStore([artist_row("Aurora Static", 0), artist_row("Mirelle", 1)])


@pytest.fixture
def release_store():
    return FakeRecordStore([release_row("First Light", 0)], table="releases")


@pytest.fixture
def theme_store():
    return FakeThemeStore()


@pytest.fixture
async def admin_session(admin_identity):
    session = SessionResolver(FakeIdentityProvider(admin_identity), FakeAdminDirectory())
    await session.resolve()
    return session


@pytest.fixture
def guest_session():
    return SessionResolver(FakeIdentityProvider(None), FakeAdminDirectory())


@pytest.fixture
def artists(artist_store, admin_session, notifier):
    return ArtistSynchronizer(artist_store, admin_session, notifier, storage=FakeImageStorage())


@pytest.fixture
def releases(release_store, admin_session, notifier):
    return ReleaseSynchronizer(release_store, admin_session, notifier)


@pytest.fixture
def theme_state():
    return ThemeState()


@pytest.fixture
def theme(theme_store, theme_state, admin_session, notifier):
    return ThemeSynchronizer(theme_store, theme_state, THEME_ID, session=admin_session, notifier=notifier)
