from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class UserSettings(BaseModel):
    """Display preferences; held for the lifetime of the process only."""

    theme: Literal["light", "dark"] = "light"
    currency: str = "AUD"
    notifications: bool = True
    compact_view: bool = False
    date_format: str = "dd/MM/yyyy"
    default_view: str = "dashboard"
    auto_save: bool = True


def merge_settings(current: UserSettings, changes: dict) -> UserSettings:
    """Apply a partial update; unknown keys are ignored, invalid values raise ValidationError."""
    known = {k: v for k, v in changes.items() if k in UserSettings.model_fields}
    return UserSettings.model_validate({**current.model_dump(), **known})
