"""
Per-user settings models.

One settings document exists per user. It is created with defaults on first
access and afterwards only ever changed through partial (merge) updates, so
independent parts of the UI can save different fields without clobbering
each other.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Theme(str, Enum):
    """Colour theme of the presentation shell."""
    LIGHT = "light"
    DARK = "dark"


class AppMode(str, Enum):
    """Which tracker the shell shows."""
    TASKS = "tasks"
    BUDGET = "budget"


class UserSettings(BaseModel):
    """
    The settings document for one user.

    Remote field names are camelCase; use `to_document()` to produce
    the stored shape.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    theme: Theme = Field(
        default=Theme.DARK,
        description="Colour theme"
    )
    display_name: str = Field(
        default="User",
        alias="displayName",
        max_length=100,
        description="Name shown in the header and the report"
    )
    app_mode: AppMode = Field(
        default=AppMode.TASKS,
        alias="appMode",
        description="Active tracker"
    )
    email: str = Field(
        default="",
        max_length=254,
        description="Reminder email address (may be empty)"
    )

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SettingsUpdate(BaseModel):
    """
    A partial settings update.

    Only fields that were explicitly provided are written; everything else
    keeps its last known remote value.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    theme: Optional[Theme] = None
    display_name: Optional[str] = Field(default=None, alias="displayName", max_length=100)
    app_mode: Optional[AppMode] = Field(default=None, alias="appMode")
    email: Optional[str] = Field(default=None, max_length=254)

    @property
    def is_empty(self) -> bool:
        return not self.to_document()

    def to_document(self) -> dict[str, Any]:
        """Stored shape of the fields that were actually provided."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_unset=True,
            exclude_none=True,
        )


def merge_settings(prior: UserSettings, update: SettingsUpdate) -> UserSettings:
    """Field-level merge: fields absent from `update` retain prior values."""
    return UserSettings.model_validate({**prior.to_document(), **update.to_document()})


# =============================================================================
# PRESENTATION THEMES
# =============================================================================

class PresentationTheme(BaseModel):
    """Colour tokens for one theme. Purely presentational."""
    model_config = ConfigDict(frozen=True)

    background: str
    text: str
    container_background: str
    input_background: str
    item_background: str
    border: str
    sub_text: str
    accent: str = "#06b6d4"


PRESENTATION_THEMES: dict[Theme, PresentationTheme] = {
    Theme.LIGHT: PresentationTheme(
        background="#f3f4f6",
        text="#1f2937",
        container_background="#ffffff",
        input_background="#f3f4f6",
        item_background="#e5e7eb",
        border="#d1d5db",
        sub_text="#6b7280",
    ),
    Theme.DARK: PresentationTheme(
        background="#111827",
        text="#ffffff",
        container_background="#1f2937",
        input_background="#374151",
        item_background="#374151",
        border="#4b5563",
        sub_text="#9ca3af",
    ),
}
