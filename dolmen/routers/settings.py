"""
Settings Router

Site-wide theme: public read as JSON or as a stylesheet, admin update.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from dolmen.core.config import settings as app_settings
from dolmen.core.dependencies import get_admin_theme_store, get_theme_state, require_admin
from dolmen.core.exceptions import DolmenError
from dolmen.routers.errors import http_error
from dolmen.schemas.catalog import ThemeResponse, ThemeSettings
from dolmen.services.gateways import ThemeStore
from dolmen.services.notifier import CollectingNotifier
from dolmen.services.session import SessionResolver
from dolmen.services.theme import ThemeState, ThemeSynchronizer

router = APIRouter(prefix="/settings", tags=["settings"])


def _response(state: ThemeState, alerts=None) -> ThemeResponse:
    return ThemeResponse(
        settings=state.settings,
        variables=state.variables,
        loaded=state.loaded,
        alerts=alerts or [],
    )


@router.get("/theme", response_model=ThemeResponse)
async def get_theme(state: Annotated[ThemeState, Depends(get_theme_state)]) -> ThemeResponse:
    """Current theme. Built-in defaults until the row has been loaded."""
    return _response(state)


@router.get("/theme.css", response_class=PlainTextResponse)
async def get_theme_css(state: Annotated[ThemeState, Depends(get_theme_state)]) -> PlainTextResponse:
    return PlainTextResponse(state.css(), media_type="text/css")


@router.put("/theme", response_model=ThemeResponse)
async def update_theme(
    data: ThemeSettings,
    session: Annotated[SessionResolver, Depends(require_admin)],
    store: Annotated[ThemeStore, Depends(get_admin_theme_store)],
    state: Annotated[ThemeState, Depends(get_theme_state)],
) -> ThemeResponse:
    """Update the theme row, then reload it for every page."""
    notifier = CollectingNotifier()
    synchronizer = ThemeSynchronizer(
        store, state, app_settings.THEME_SETTINGS_ID, session=session, notifier=notifier
    )
    try:
        await synchronizer.save(data)
    except DolmenError as exc:
        raise http_error(exc)
    return _response(state, notifier.alerts)
