"""
Admin Router

Artist and release management for signed-in admins. Every mutation
answers with the freshly refetched list, never a patched one.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from dolmen.core.dependencies import (
    admin_artist_store,
    admin_release_store,
    get_image_storage,
    get_session,
    require_admin,
)
from dolmen.core.exceptions import DolmenError
from dolmen.routers.errors import http_error
from dolmen.schemas.auth import SessionResponse
from dolmen.schemas.catalog import (
    ArtistForm,
    ArtistInput,
    ArtistListResponse,
    ImageUploadResponse,
    PendingImage,
    ReleaseForm,
    ReleaseInput,
    ReleaseListResponse,
)
from dolmen.services.gateways import ImageStorage, RecordStore
from dolmen.services.notifier import CollectingNotifier
from dolmen.services.records import ArtistSynchronizer, RecordSynchronizer, ReleaseSynchronizer
from dolmen.services.session import SessionResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

ALLOWED_IMAGE_TYPES = ["image/png", "image/jpeg", "image/gif", "image/webp", "image/svg+xml"]
MAX_IMAGE_SIZE = 5 * 1024 * 1024


@router.get("/session", response_model=SessionResponse)
async def get_admin_session(
    session: Annotated[SessionResolver, Depends(get_session)],
) -> SessionResponse:
    """Where the caller stands: unauthenticated, non-admin or admin."""
    return SessionResponse(status=session.status, identity=session.identity)


async def _list(synchronizer: RecordSynchronizer, notifier: CollectingNotifier) -> list:
    if not await synchronizer.fetch_all():
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=notifier.alerts[-1])
    return synchronizer.items


async def _save(synchronizer: RecordSynchronizer, form) -> None:
    try:
        await synchronizer.save(form)
    except DolmenError as exc:
        raise http_error(exc)


async def _remove(synchronizer: RecordSynchronizer, record_id: str) -> None:
    try:
        removed = await synchronizer.remove(record_id)
    except DolmenError as exc:
        raise http_error(exc)
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Deletion not confirmed. Repeat with confirm=true.",
        )


# Artists

@router.get("/artists", response_model=ArtistListResponse)
async def list_artists(
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(admin_artist_store)],
) -> ArtistListResponse:
    notifier = CollectingNotifier()
    synchronizer = ArtistSynchronizer(store, session, notifier)
    items = await _list(synchronizer, notifier)
    return ArtistListResponse(items=items, alerts=notifier.alerts)


@router.post("/artists", response_model=ArtistListResponse, status_code=status.HTTP_201_CREATED)
async def create_artist(
    data: ArtistInput,
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(admin_artist_store)],
) -> ArtistListResponse:
    notifier = CollectingNotifier()
    synchronizer = ArtistSynchronizer(store, session, notifier)
    await _save(synchronizer, ArtistForm(**data.model_dump()))
    return ArtistListResponse(items=synchronizer.items, alerts=notifier.alerts)


@router.put("/artists/{artist_id}", response_model=ArtistListResponse)
async def update_artist(
    artist_id: str,
    data: ArtistInput,
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(admin_artist_store)],
) -> ArtistListResponse:
    notifier = CollectingNotifier()
    synchronizer = ArtistSynchronizer(store, session, notifier)
    await _save(synchronizer, ArtistForm(id=artist_id, **data.model_dump()))
    return ArtistListResponse(items=synchronizer.items, alerts=notifier.alerts)


@router.delete("/artists/{artist_id}", response_model=ArtistListResponse)
async def delete_artist(
    artist_id: str,
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(admin_artist_store)],
    confirm: bool = False,
) -> ArtistListResponse:
    """Delete an artist. Requires `confirm=true`."""
    notifier = CollectingNotifier(confirmed=confirm)
    synchronizer = ArtistSynchronizer(store, session, notifier)
    await _remove(synchronizer, artist_id)
    return ArtistListResponse(items=synchronizer.items, alerts=notifier.alerts)


@router.post("/artists/upload", response_model=ImageUploadResponse)
async def upload_artist_image(
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(admin_artist_store)],
    storage: Annotated[ImageStorage, Depends(get_image_storage)],
    file: UploadFile = File(...),
) -> ImageUploadResponse:
    """Upload an artist image and return its public URL. PNG, JPG, GIF, WEBP, SVG."""
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed: {', '.join(ALLOWED_IMAGE_TYPES)}",
        )

    content = await file.read()
    if len(content) > MAX_IMAGE_SIZE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File too large. Max 5MB.")

    synchronizer = ArtistSynchronizer(store, session, CollectingNotifier(), storage=storage)
    image = PendingImage(
        filename=file.filename or "image", content=content, content_type=file.content_type
    )
    try:
        url = await synchronizer.upload_image(image)
    except DolmenError as exc:
        raise http_error(exc)
    return ImageUploadResponse(url=url)


# Releases

@router.get("/releases", response_model=ReleaseListResponse)
async def list_releases(
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(admin_release_store)],
) -> ReleaseListResponse:
    notifier = CollectingNotifier()
    synchronizer = ReleaseSynchronizer(store, session, notifier)
    items = await _list(synchronizer, notifier)
    return ReleaseListResponse(items=items, alerts=notifier.alerts)


@router.post("/releases", response_model=ReleaseListResponse, status_code=status.HTTP_201_CREATED)
async def create_release(
    data: ReleaseInput,
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(admin_release_store)],
) -> ReleaseListResponse:
    notifier = CollectingNotifier()
    synchronizer = ReleaseSynchronizer(store, session, notifier)
    await _save(synchronizer, ReleaseForm(**data.model_dump()))
    return ReleaseListResponse(items=synchronizer.items, alerts=notifier.alerts)


@router.put("/releases/{release_id}", response_model=ReleaseListResponse)
async def update_release(
    release_id: str,
    data: ReleaseInput,
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(admin_release_store)],
) -> ReleaseListResponse:
    notifier = CollectingNotifier()
    synchronizer = ReleaseSynchronizer(store, session, notifier)
    await _save(synchronizer, ReleaseForm(id=release_id, **data.model_dump()))
    return ReleaseListResponse(items=synchronizer.items, alerts=notifier.alerts)


@router.delete("/releases/{release_id}", response_model=ReleaseListResponse)
async def delete_release(
    release_id: str,
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(admin_release_store)],
    confirm: bool = False,
) -> ReleaseListResponse:
    """Delete a release. Requires `confirm=true`."""
    notifier = CollectingNotifier(confirmed=confirm)
    synchronizer = ReleaseSynchronizer(store, session, notifier)
    await _remove(synchronizer, release_id)
    return ReleaseListResponse(items=synchronizer.items, alerts=notifier.alerts)
