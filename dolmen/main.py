"""
Dolmen Gate Admin - FastAPI Application

Content admin service for the Dolmen Gate Media label site.
"""

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dolmen.core.config import settings
from dolmen.core.supabase_client import get_supabase_admin_client, get_supabase_client
from dolmen.routers.admin import router as admin_router
from dolmen.routers.catalog import router as catalog_router
from dolmen.routers.settings import router as settings_router
from dolmen.services.gateways import SupabaseThemeStore
from dolmen.services.theme import ThemeState, ThemeSynchronizer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create Supabase clients and load the theme once at startup."""
    app.state.supabase = None
    app.state.supabase_admin = None

    try:
        app.state.supabase = await get_supabase_client()
        app.state.supabase_admin = await get_supabase_admin_client()
    except ValueError as e:
        logger.error(f"Supabase unavailable, running with built-in theme only: {e}")

    if app.state.supabase is not None:
        synchronizer = ThemeSynchronizer(
            SupabaseThemeStore(app.state.supabase),
            app.state.theme_state,
            settings.THEME_SETTINGS_ID,
        )
        await synchronizer.load()

    yield


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Dolmen Gate Admin",
        description="Artists, releases and site theme for the Dolmen Gate Media label",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.theme_state = ThemeState()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(catalog_router)
    app.include_router(settings_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("dolmen.main:app", host="0.0.0.0", port=port, log_level="info")
