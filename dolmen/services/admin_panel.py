"""
Admin panel controller.

Binds the session resolver, the record synchronizers and the theme
synchronizer into the panel's view state: which view is shown, which tab
is selected, and at most one open edit buffer per entity type.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Generic, Optional, TypeVar

from pydantic import BaseModel

from dolmen.core.exceptions import (
    AdminRequiredError,
    BackendError,
    IdentityProviderError,
    RecordValidationError,
)
from dolmen.schemas.auth import AdminStatus
from dolmen.schemas.catalog import Artist, ArtistForm, PendingImage, Release, ReleaseForm, ThemeSettings
from dolmen.services.gateways import IdentityProvider
from dolmen.services.notifier import Notifier
from dolmen.services.records import ArtistSynchronizer, RecordSynchronizer, ReleaseSynchronizer
from dolmen.services.session import SessionResolver
from dolmen.services.theme import ThemeSynchronizer

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "Something went wrong. Please try again."

FormT = TypeVar("FormT", bound=BaseModel)


class View(str, Enum):
    LOADING = "loading"
    SIGN_IN = "sign-in"
    ACCESS_DENIED = "access-denied"
    MANAGEMENT = "management"


class Tab(str, Enum):
    THEME = "theme"
    ARTISTS = "artists"
    RELEASES = "releases"


class EditBuffer(Generic[FormT]):
    """An open edit form and its field errors."""

    def __init__(self, form: FormT):
        self.form = form
        self.errors: Dict[str, str] = {}

    @property
    def is_new(self) -> bool:
        return not getattr(self.form, "id", None)

    def set_field(self, field: str, value) -> None:
        if field not in type(self.form).model_fields:
            raise KeyError(field)
        self.form = self.form.model_copy(update={field: value})
        self.errors.pop(field, None)


class AdminPanelController:
    def __init__(
        self,
        identity_provider: IdentityProvider,
        session: SessionResolver,
        artists: ArtistSynchronizer,
        releases: ReleaseSynchronizer,
        theme: ThemeSynchronizer,
        notifier: Notifier,
        oauth_redirect_url: str = "",
    ):
        self._identity_provider = identity_provider
        self.session = session
        self.artists = artists
        self.releases = releases
        self.theme = theme
        self._notifier = notifier
        self.oauth_redirect_url = oauth_redirect_url

        self.tab = Tab.THEME
        self.artist_buffer: Optional[EditBuffer[ArtistForm]] = None
        self.release_buffer: Optional[EditBuffer[ReleaseForm]] = None
        self.theme_buffer: EditBuffer[ThemeSettings] = EditBuffer(theme.state.settings.model_copy())

        self.session.add_listener(self._on_status_change)
        self.theme.state.subscribe(lambda state: self._reset_theme_form())

    # Lifecycle

    @property
    def view(self) -> View:
        status = self.session.status
        if not self.session.resolved or status is AdminStatus.AUTHENTICATING:
            return View.LOADING
        if status is AdminStatus.UNAUTHENTICATED:
            return View.SIGN_IN
        if status is AdminStatus.NON_ADMIN:
            return View.ACCESS_DENIED
        return View.MANAGEMENT

    async def mount(self) -> None:
        self.session.start()
        await self._resolve()

    def unmount(self) -> None:
        self.session.stop()

    async def retry_session(self) -> None:
        """Re-run admin resolution, e.g. after a timeout."""
        await self._resolve()

    async def _resolve(self) -> None:
        try:
            await self.session.resolve()
        except IdentityProviderError as exc:
            self._notifier.alert(f"Authentication error: {exc.message}")

    async def _on_status_change(self, status: AdminStatus) -> None:
        if status is AdminStatus.ADMIN:
            await self.refresh()
        elif status is AdminStatus.UNAUTHENTICATED:
            self.artist_buffer = None
            self.release_buffer = None

    async def refresh(self) -> None:
        """Full refetch of artists, releases and theme."""
        await self.artists.fetch_all()
        await self.releases.fetch_all()
        await self.theme.load()

    # Authentication

    async def sign_in_with_password(self, email: str, password: str) -> None:
        try:
            await self._identity_provider.sign_in_with_password(email, password)
        except IdentityProviderError as exc:
            self._notifier.alert(exc.message)
            return
        await self._resolve()

    async def sign_up(self, email: str, password: str) -> None:
        try:
            identity = await self._identity_provider.sign_up(email, password)
        except IdentityProviderError as exc:
            self._notifier.alert(exc.message)
            return
        if identity is None:
            self._notifier.alert("Check your email to confirm your account.")
            return
        await self._resolve()

    async def sign_in_with_oauth(self, provider: str = "google") -> Optional[str]:
        """Start the OAuth redirect flow; returns the provider URL."""
        try:
            return await self._identity_provider.sign_in_with_oauth(provider, self.oauth_redirect_url)
        except IdentityProviderError as exc:
            self._notifier.alert(exc.message)
            return None

    async def sign_out(self) -> None:
        try:
            await self.session.sign_out()
        except IdentityProviderError as exc:
            self._notifier.alert(exc.message)

    def select_tab(self, tab: Tab) -> None:
        self.tab = Tab(tab)

    # Artists

    def open_new_artist(self) -> EditBuffer[ArtistForm]:
        self.artist_buffer = EditBuffer(self.artists.new_form())
        return self.artist_buffer

    def edit_artist(self, artist: Artist) -> EditBuffer[ArtistForm]:
        self.artist_buffer = EditBuffer(ArtistForm.from_record(artist))
        return self.artist_buffer

    def update_artist_field(self, field: str, value) -> None:
        self._buffer(self.artist_buffer).set_field(field, value)

    def attach_artist_image(self, filename: str, content: bytes, content_type: Optional[str] = None) -> None:
        self.update_artist_field(
            "image_file", PendingImage(filename=filename, content=content, content_type=content_type)
        )
        self.artist_buffer.errors.pop("image_url", None)

    def cancel_artist(self) -> None:
        self.artist_buffer = None

    async def submit_artist(self) -> bool:
        buffer = self._buffer(self.artist_buffer)
        if await self._submit(self.artists, buffer):
            self.artist_buffer = None
            return True
        return False

    async def delete_artist(self, artist_id: str) -> bool:
        return await self._delete(self.artists, artist_id)

    # Releases

    def open_new_release(self) -> EditBuffer[ReleaseForm]:
        self.release_buffer = EditBuffer(self.releases.new_form())
        return self.release_buffer

    def edit_release(self, release: Release) -> EditBuffer[ReleaseForm]:
        self.release_buffer = EditBuffer(ReleaseForm.from_record(release))
        return self.release_buffer

    def update_release_field(self, field: str, value) -> None:
        self._buffer(self.release_buffer).set_field(field, value)

    def cancel_release(self) -> None:
        self.release_buffer = None

    async def submit_release(self) -> bool:
        buffer = self._buffer(self.release_buffer)
        if await self._submit(self.releases, buffer):
            self.release_buffer = None
            return True
        return False

    async def delete_release(self, release_id: str) -> bool:
        return await self._delete(self.releases, release_id)

    # Theme

    def update_theme_field(self, field: str, value) -> None:
        self.theme_buffer.set_field(field, value)

    def _reset_theme_form(self) -> None:
        self.theme_buffer = EditBuffer(self.theme.state.settings.model_copy())

    async def submit_theme(self) -> bool:
        return await self._submit(self.theme, self.theme_buffer)

    # Helpers

    @staticmethod
    def _buffer(buffer: Optional[EditBuffer]) -> EditBuffer:
        if buffer is None:
            raise RuntimeError("No form is open")
        return buffer

    async def _submit(self, synchronizer, buffer: EditBuffer) -> bool:
        buffer.errors = {}
        try:
            await synchronizer.save(buffer.form)
        except RecordValidationError as exc:
            buffer.errors = exc.errors
            self._notifier.alert(exc.message)
            return False
        except (AdminRequiredError, BackendError) as exc:
            self._notifier.alert(exc.message)
            return False
        except Exception as exc:
            logger.exception(f"Unexpected error: {exc}")
            self._notifier.alert(RETRY_MESSAGE)
            return False
        return True

    async def _delete(self, synchronizer: RecordSynchronizer, record_id: str) -> bool:
        try:
            return await synchronizer.remove(record_id)
        except (AdminRequiredError, BackendError) as exc:
            self._notifier.alert(exc.message)
            return False
        except Exception as exc:
            logger.exception(f"Unexpected error: {exc}")
            self._notifier.alert(RETRY_MESSAGE)
            return False
