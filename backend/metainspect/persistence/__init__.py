"""
Persistence layer for user preferences.

SQLite-backed storage for the include-raw-metadata and essential-only
display preferences.
"""

from .preferences import Preferences, PreferencesStore
from .errors import PersistenceError, SchemaError

__all__ = ["Preferences", "PreferencesStore", "PersistenceError", "SchemaError"]
