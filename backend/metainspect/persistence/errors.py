"""
Preference storage errors.

Raised by PreferencesStore; callers map them to HTTP 500 or CLI exit code 4.
"""


class PersistenceError(Exception):
    """The preferences database could not be opened, read or written."""

    pass


class SchemaError(PersistenceError):
    """The preferences database was written by a newer schema version."""

    pass
