"""
Configuration Management for the Task & Budget Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The runtime inputs the app needs (store connection blob, app id,
optional bootstrap token) are explicit fields with documented defaults
instead of optional globals looked up at call sites.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FirebaseSettings(BaseSettings):
    """Firebase connection configuration (Firestore + Auth)."""

    model_config = SettingsConfigDict(
        env_prefix="FIREBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Web config blob as produced by the Firebase console, passed as JSON
    config: dict[str, Any] = Field(
        default_factory=dict,
        description="Firebase web app configuration (JSON object)"
    )
    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to a service account JSON used for Firestore access"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Web API key; falls back to config['apiKey']"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            import warnings
            warnings.warn(
                f"Firebase credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v

    @property
    def web_api_key(self) -> Optional[str]:
        return self.api_key or self.config.get("apiKey")

    @property
    def project_id(self) -> Optional[str]:
        return self.config.get("projectId")


class VoiceSettings(BaseSettings):
    """Speech-to-text capture configuration."""

    model_config = SettingsConfigDict(
        env_prefix="VOICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    language: str = Field(
        default="en-US",
        description="Recognition language tag"
    )
    listen_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How long to wait for speech to start"
    )
    phrase_time_limit_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Maximum length of one utterance"
    )


class AudioSettings(BaseSettings):
    """Alarm / ringtone playback configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUDIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    repeat_pause_ms: int = Field(
        default=500,
        ge=0,
        description="Pause between pattern repetitions while the alarm is armed"
    )
    gain: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Output volume (0-1)"
    )
    sample_rate: int = Field(
        default=44100,
        ge=8000,
        description="Synthesis sample rate in Hz"
    )
    default_ringtone: str = Field(
        default="Default Beep",
        description="Ringtone used when none is chosen"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Standard library log level name"
    )

    # Tenant / identity inputs
    app_id: str = Field(
        default="default-app-id",
        min_length=1,
        description="Application/tenant identifier used to namespace store paths"
    )
    initial_auth_token: Optional[str] = Field(
        default=None,
        description="Optional custom token for sign-in; anonymous sign-in otherwise"
    )

    # Backend selection
    storage_backend: Literal["firestore", "memory"] = Field(
        default="firestore",
        description="'memory' runs fully offline with a local identity"
    )
    local_user_id: str = Field(
        default="local-user",
        min_length=1,
        description="User id issued by the local auth provider in memory mode"
    )

    @field_validator('initial_auth_token')
    @classmethod
    def blank_token_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def firebase(self) -> FirebaseSettings:
        return FirebaseSettings()

    @property
    def voice(self) -> VoiceSettings:
        return VoiceSettings()

    @property
    def audio(self) -> AudioSettings:
        return AudioSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("firebase", "voice", "audio", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
