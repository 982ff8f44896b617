"""Configuration package."""

from src.config.settings import (
    AppSettings,
    AudioSettings,
    FirebaseSettings,
    Settings,
    VoiceSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AudioSettings",
    "FirebaseSettings",
    "Settings",
    "VoiceSettings",
    "get_settings",
    "validate_all_settings",
]
