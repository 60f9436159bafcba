"""System settings."""

from corebase.settings.store import (
    GENERAL_KEY,
    KNOWN_KEYS,
    PERMISSIONS_KEY,
    SettingsStore,
)

__all__ = ["GENERAL_KEY", "KNOWN_KEYS", "PERMISSIONS_KEY", "SettingsStore"]
