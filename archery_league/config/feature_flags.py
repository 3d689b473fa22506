"""
Feature Flags

Optional league behaviour switched on or off from the environment.
"""
import os


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


class FeatureFlags:
    """Flags read once at import time."""

    # Refresh Entry.current_handicap after match results are written
    FEATURE_HANDICAP_SYNC: bool = get_bool_env('FEATURE_HANDICAP_SYNC', True)


feature_flags = FeatureFlags()
