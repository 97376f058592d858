"""
Database connection management.

Provides the Supabase client singleton used by the Supabase analysis store.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class ConnectionError(Exception):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Uses lru_cache to ensure only one client is created.
    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        ConnectionError: If Supabase is not configured or connection fails
    """
    if not settings.supabase_configured:
        raise ConnectionError("Supabase is not configured. Set SUPABASE_URL and SUPABASE_KEY.")

    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )

        client = create_client(
            settings.supabase_url,
            settings.supabase_key
        )

        logger.info("supabase_connected", status="success")
        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise ConnectionError(f"Failed to connect to Supabase: {e}") from e


def check_connection() -> dict:
    """
    Check health of the configured analysis store backend.

    Returns:
        dict: Connection status with details
    """
    if settings.store_backend != "supabase":
        return {"status": "healthy", "backend": "memory"}

    try:
        client = get_supabase_client()
        result = client.table(settings.manifests_table).select("id", count="exact").execute()

        return {
            "status": "healthy",
            "backend": "supabase",
            "table": settings.manifests_table,
            "stored_analyses": result.count
        }

    except Exception as e:
        logger.warning("store_health_check_failed", error=str(e))
        return {
            "status": "unhealthy",
            "backend": "supabase",
            "error": str(e)
        }
