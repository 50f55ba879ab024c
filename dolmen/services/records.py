"""
Record synchronizers for artists and releases.

The in-memory lists are caches of the backend tables. They are never
patched: every successful write is followed by a full refetch, and every
failure leaves them exactly as they were.
"""
from __future__ import annotations

import logging
import os
import secrets
import time
from datetime import date
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from dolmen.core.exceptions import AdminRequiredError, BackendError, RecordValidationError, StoreError
from dolmen.schemas.catalog import Artist, ArtistForm, PendingImage, Release, ReleaseForm
from dolmen.services.error_classifier import classify
from dolmen.services.gateways import ImageStorage, RecordStore
from dolmen.services.normalize import normalize_artist, normalize_release
from dolmen.services.notifier import Notifier
from dolmen.services.session import SessionResolver
from dolmen.services.validation import FormErrors, validate_artist, validate_release

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
FormT = TypeVar("FormT", bound=BaseModel)


def generate_image_name(filename: str) -> str:
    """Collision-resistant storage name: <epoch ms>-<random hex><original extension>."""
    _, extension = os.path.splitext(filename)
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{extension.lower()}"


class RecordSynchronizer(Generic[RecordT, FormT]):
    """Save, remove and refetch one entity type against its table."""

    entity = "record"
    record_type: Type[RecordT]
    form_type: Type[FormT]

    def __init__(
        self,
        store: RecordStore,
        session: SessionResolver,
        notifier: Notifier,
        validator: Callable[[Any], FormErrors],
        normalizer: Callable[[FormT], Dict[str, Any]],
    ):
        self._store = store
        self._session = session
        self._notifier = notifier
        self._validator = validator
        self._normalizer = normalizer
        self.items: List[RecordT] = []

    def _require_admin(self) -> None:
        if not self._session.is_admin:
            raise AdminRequiredError()

    def new_form(self) -> FormT:
        """Seed for the create form; new records go last."""
        return self.form_type(order_index=len(self.items))

    def validate(self, candidate: FormT) -> FormErrors:
        return self._validator(candidate)

    async def _prepare(self, candidate: FormT) -> Dict[str, Any]:
        return self._normalizer(candidate)

    async def _next_index(self) -> int:
        """Position after the last stored record; new records go last."""
        try:
            rows = await self._store.select_all()
        except StoreError as exc:
            logger.warning(f"Could not count {self.entity}s, using cached list: {exc.message}")
            return len(self.items)
        return len(rows)

    async def fetch_all(self) -> bool:
        """
        Replace the list with a fresh ordered read.

        On failure the current list is kept, an alert is raised and False
        is returned.
        """
        try:
            rows = await self._store.select_all()
            items = [self.record_type.model_validate(row) for row in rows]
        except StoreError as exc:
            message = classify(exc)
            logger.error(f"Failed to fetch {self.entity}s: {message}")
            self._notifier.alert(f"Could not load {self.entity}s: {message}")
            return False
        except ValidationError as exc:
            logger.error(f"Unexpected {self.entity} row shape: {exc}")
            self._notifier.alert(f"Could not load {self.entity}s: unexpected data from the server")
            return False

        self.items = items
        return True

    async def save(self, candidate: FormT) -> None:
        """
        Validate, write (insert without id, update with id), then refetch.

        Raises:
            AdminRequiredError: no admin session; nothing was sent.
            RecordValidationError: field errors; nothing was sent.
            BackendError: the write (or image upload) failed; lists untouched.
        """
        self._require_admin()

        errors = self.validate(candidate)
        if errors:
            raise RecordValidationError(errors)

        record_id = getattr(candidate, "id", None)
        if not record_id and candidate.order_index is None:
            candidate = candidate.model_copy(update={"order_index": await self._next_index()})

        record = await self._prepare(candidate)
        try:
            if record_id:
                await self._store.update(record_id, record)
            else:
                await self._store.insert(record)
        except StoreError as exc:
            message = classify(exc)
            logger.error(f"Failed to save {self.entity} {record_id or '(new)'}: {message}")
            raise BackendError(message, exc.code) from exc

        logger.info(f"Saved {self.entity} {record_id or '(new)'}")
        await self.fetch_all()

    async def remove(self, record_id: str) -> bool:
        """
        Delete after explicit confirmation, then refetch.

        Returns False when the user declined; no backend call is made.
        """
        self._require_admin()

        if not await self._notifier.confirm(f"Delete this {self.entity}?"):
            return False

        try:
            await self._store.delete(record_id)
        except StoreError as exc:
            message = classify(exc)
            logger.error(f"Failed to delete {self.entity} {record_id}: {message}")
            raise BackendError(message, exc.code) from exc

        logger.info(f"Deleted {self.entity} {record_id}")
        await self.fetch_all()
        return True

    def find(self, record_id: str) -> Optional[RecordT]:
        return next((item for item in self.items if getattr(item, "id", None) == record_id), None)


class ArtistSynchronizer(RecordSynchronizer[Artist, ArtistForm]):
    """Artists, with upload of a pending local image before the write."""

    entity = "artist"
    record_type = Artist
    form_type = ArtistForm

    def __init__(
        self,
        store: RecordStore,
        session: SessionResolver,
        notifier: Notifier,
        storage: Optional[ImageStorage] = None,
    ):
        super().__init__(store, session, notifier, validate_artist, normalize_artist)
        self._storage = storage

    async def upload_image(self, image: PendingImage) -> str:
        """Upload to object storage and return the public URL."""
        if self._storage is None:
            raise BackendError("Image uploads are not configured")

        path = generate_image_name(image.filename)
        try:
            await self._storage.upload(path, image.content, image.content_type)
            url = await self._storage.get_public_url(path)
        except StoreError as exc:
            message = classify(exc)
            logger.error(f"Failed to upload artist image {image.filename}: {message}")
            raise BackendError(message, exc.code) from exc

        logger.info(f"Uploaded artist image {path}")
        return url

    async def _prepare(self, candidate: ArtistForm) -> Dict[str, Any]:
        if candidate.image_file is not None:
            image_url = await self.upload_image(candidate.image_file)
            candidate = candidate.model_copy(update={"image_url": image_url, "image_file": None})
        return self._normalizer(candidate)


class ReleaseSynchronizer(RecordSynchronizer[Release, ReleaseForm]):
    entity = "release"
    record_type = Release
    form_type = ReleaseForm

    def __init__(self, store: RecordStore, session: SessionResolver, notifier: Notifier):
        super().__init__(store, session, notifier, validate_release, normalize_release)

    def new_form(self) -> ReleaseForm:
        form = super().new_form()
        form.year = str(date.today().year)
        return form
