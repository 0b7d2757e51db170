"""Typed user preferences and their text encoding in the users table."""

import json
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from catalyst.core.errors import ParseError

Theme = Literal["light", "dark", "system"]
FontSize = Literal["small", "medium", "large"]


class UserPreferences(BaseModel):
    model_config = ConfigDict(extra="forbid")

    theme: Theme = "system"
    language: str = "pt-BR"
    notifications: bool = True
    font_size: FontSize = "medium"


def serialize_preferences(prefs: UserPreferences) -> str:
    return prefs.model_dump_json()


def parse_preferences(raw: str | None) -> UserPreferences:
    """Decode stored preferences. Raises ParseError if the blob is corrupt.

    A missing blob is not an error and yields the defaults.
    """
    if not raw:
        return UserPreferences()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseError(f"Preferences are not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ParseError("Preferences must be a JSON object")
    try:
        return UserPreferences.model_validate(data)
    except PydanticValidationError as e:
        raise ParseError(f"Preferences have unexpected shape: {e.error_count()} error(s)") from e
