"""Core configuration, database access, session bridging and permissions."""

from salesdesk.core.config import get_settings, settings
from salesdesk.core.database import atomic, get_db

__all__ = ["atomic", "get_settings", "settings", "get_db"]
