"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    Session: Signed-in user state passed into the API client
"""

from config.settings import settings, get_settings, Settings
from config.session import Session

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Session
    "Session",
]
