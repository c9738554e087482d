"""
SQLite persistence for user preferences.

Single-file database holding the two display preferences:
- include_raw_metadata
- show_only_essential

Explicit save/load only - no auto-persistence. The engine never reads the
store directly; callers load preferences into InspectionSettings.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

from .errors import PersistenceError, SchemaError

logger = logging.getLogger(__name__)


# Database schema version for migrations
SCHEMA_VERSION = 1

_KEY_PREFIX = "metadata."


class Preferences(BaseModel):
    """Persisted user preferences."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    include_raw_metadata: bool = False
    show_only_essential: bool = False


class PreferencesStore:
    """
    Manages SQLite persistence for user preferences.

    Values are stored as key/value rows under the "metadata." namespace,
    e.g. "metadata.includeRawMetadata".
    """

    _KEYS: Dict[str, str] = {
        "include_raw_metadata": f"{_KEY_PREFIX}includeRawMetadata",
        "show_only_essential": f"{_KEY_PREFIX}showOnlyEssential",
    }

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize preferences store.

        Args:
            db_path: Path to SQLite database file (defaults to ./metainspect.db)
        """
        if db_path is None:
            db_path = str(Path.cwd() / "metainspect.db")

        self.db_path = db_path
        self._ensure_schema()

    @contextmanager
    def _connect(self):
        """Context manager for database connections."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except PersistenceError:
            conn.rollback()
            raise
        except Exception as e:
            conn.rollback()
            raise PersistenceError(f"Database operation failed: {e}") from e
        finally:
            conn.close()

    def _ensure_schema(self):
        """Create schema if it doesn't exist."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)
            cursor.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
            row = cursor.fetchone()
            current_version = row[0] if row else 0

            if current_version > SCHEMA_VERSION:
                raise SchemaError(
                    f"Database {self.db_path} has schema version {current_version}, "
                    f"this build supports up to {SCHEMA_VERSION}"
                )

            if current_version < 1:
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS preferences (
                        key TEXT PRIMARY KEY,
                        value INTEGER NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
                cursor.execute(
                    "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                    (1, datetime.now().isoformat())
                )

    def load(self) -> Preferences:
        """Load preferences; missing keys fall back to defaults."""
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM preferences").fetchall()

        stored = {row["key"]: bool(row["value"]) for row in rows}
        values = {
            field: stored[key]
            for field, key in self._KEYS.items()
            if key in stored
        }
        return Preferences(**values)

    def save(self, preferences: Preferences) -> None:
        """Persist all preferences in one transaction."""
        now = datetime.now().isoformat()
        with self._connect() as conn:
            for field, key in self._KEYS.items():
                conn.execute("""
                    INSERT INTO preferences (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                """, (key, int(getattr(preferences, field)), now))
        logger.debug(f"Saved preferences to {self.db_path}")
