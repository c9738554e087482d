"""
Tests for SQLite preference persistence.
"""

import sqlite3

import pytest

from metainspect.persistence import PersistenceError, Preferences, PreferencesStore, SchemaError


class TestPreferencesStore:
    """Load/save round trips against a throwaway database."""

    def test_defaults_when_empty(self, tmp_path):
        store = PreferencesStore(str(tmp_path / "prefs.db"))

        prefs = store.load()

        assert prefs == Preferences(include_raw_metadata=False, show_only_essential=False)

    def test_save_and_reload(self, tmp_path):
        db_path = str(tmp_path / "prefs.db")
        PreferencesStore(db_path).save(Preferences(include_raw_metadata=True, show_only_essential=False))

        prefs = PreferencesStore(db_path).load()

        assert prefs.include_raw_metadata is True
        assert prefs.show_only_essential is False

    def test_save_overwrites(self, tmp_path):
        store = PreferencesStore(str(tmp_path / "prefs.db"))
        store.save(Preferences(include_raw_metadata=True, show_only_essential=True))
        store.save(Preferences(include_raw_metadata=False, show_only_essential=True))

        assert store.load() == Preferences(include_raw_metadata=False, show_only_essential=True)

    def test_keys_are_namespaced(self, tmp_path):
        db_path = str(tmp_path / "prefs.db")
        PreferencesStore(db_path).save(Preferences(include_raw_metadata=True))

        conn = sqlite3.connect(db_path)
        keys = {row[0] for row in conn.execute("SELECT key FROM preferences")}
        conn.close()

        assert keys == {"metadata.includeRawMetadata", "metadata.showOnlyEssential"}

    def test_schema_is_created_once(self, tmp_path):
        db_path = str(tmp_path / "prefs.db")
        PreferencesStore(db_path)
        PreferencesStore(db_path)

        conn = sqlite3.connect(db_path)
        versions = conn.execute("SELECT version FROM schema_version").fetchall()
        conn.close()

        assert versions == [(1,)]

    def test_unusable_path_raises(self, tmp_path):
        with pytest.raises(PersistenceError):
            PreferencesStore(str(tmp_path / "missing-dir" / "prefs.db"))

    def test_newer_schema_is_rejected(self, tmp_path):
        db_path = str(tmp_path / "prefs.db")
        PreferencesStore(db_path)
        conn = sqlite3.connect(db_path)
        conn.execute("INSERT INTO schema_version (version, applied_at) VALUES (99, 'later')")
        conn.commit()
        conn.close()

        with pytest.raises(SchemaError):
            PreferencesStore(db_path)
