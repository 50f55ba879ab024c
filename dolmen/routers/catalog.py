"""
Catalog Router

Public read endpoints for the landing page, plus the artist POST used by
external tooling.
"""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from dolmen.core.dependencies import public_artist_store, public_release_store, require_admin, admin_artist_store
from dolmen.core.exceptions import DolmenError, StoreError
from dolmen.routers.errors import http_error
from dolmen.schemas.catalog import Artist, ArtistForm, ArtistInput, Release
from dolmen.services.error_classifier import classify
from dolmen.services.gateways import RecordStore
from dolmen.services.notifier import CollectingNotifier
from dolmen.services.records import ArtistSynchronizer
from dolmen.services.session import SessionResolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])


async def _read(store: RecordStore, featured: Optional[bool]) -> list:
    try:
        if featured is None:
            return await store.select_all()
        return await store.select_where("featured", featured)
    except StoreError as exc:
        message = classify(exc)
        logger.error(f"Catalog read from {getattr(store, 'table', 'store')} failed: {message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=message)


@router.get("/artists", response_model=List[Artist])
async def list_artists(
    store: Annotated[RecordStore, Depends(public_artist_store)],
    featured: Optional[bool] = None,
) -> List[Artist]:
    """List artists in display order. `featured=true` gives the landing page set."""
    rows = await _read(store, featured)
    return [Artist.model_validate(row) for row in rows]


@router.post("/artists", status_code=status.HTTP_201_CREATED)
async def create_artist(
    data: ArtistInput,
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[RecordStore, Depends(admin_artist_store)],
) -> dict:
    """Add an artist. Same validation as the admin panel."""
    synchronizer = ArtistSynchronizer(store, session, CollectingNotifier())
    try:
        await synchronizer.save(ArtistForm(**data.model_dump()))
    except DolmenError as exc:
        raise http_error(exc)
    return {"message": "Artist added!"}


@router.get("/releases", response_model=List[Release])
async def list_releases(
    store: Annotated[RecordStore, Depends(public_release_store)],
    featured: Optional[bool] = None,
) -> List[Release]:
    """List releases in display order."""
    rows = await _read(store, featured)
    return [Release.model_validate(row) for row in rows]
