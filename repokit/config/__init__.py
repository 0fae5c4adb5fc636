"""
Configuration Module

Library configuration loaded from environment variables.

Usage:
======
    from repokit.config.settings import settings

    redis_url = settings.REDIS_URL
    lifetime = settings.CACHE_LIFETIME
"""

from repokit.config.settings import settings, get_settings, Settings

__all__ = [
    "settings",
    "get_settings",
    "Settings",
]
