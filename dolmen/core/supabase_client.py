"""Supabase clients for authentication, table and storage operations."""
from dolmen.core.config import settings


async def get_supabase_admin_client():
    """
    Get async Supabase client with service role key for admin operations.

    This client can:
    - Write artists, releases and theme settings
    - Read the admin_users table
    - Upload artist images to storage
    - Bypass Row Level Security

    Only use it after the caller has been resolved as an admin.
    """
    from supabase import acreate_client

    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError("SUPABASE_SERVICE_ROLE_KEY not configured")

    return await acreate_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY
    )


async def get_supabase_client():
    """
    Get async Supabase client with anon key for public reads and token checks.
    """
    from supabase import acreate_client

    if not settings.SUPABASE_ANON_KEY:
        raise ValueError("SUPABASE_ANON_KEY not configured")

    return await acreate_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_ANON_KEY
    )
