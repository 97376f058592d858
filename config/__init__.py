"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings
    configure_logging: structlog setup
    get_supabase_client: Cached Supabase client
    check_connection: Health check function
"""

from config.settings import settings, get_settings, Settings
from config.logging import configure_logging
from config.database import (
    get_supabase_client,
    check_connection,
    ConnectionError
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Logging
    "configure_logging",

    # Database
    "get_supabase_client",
    "check_connection",
    "ConnectionError",
]
