from dataclasses import dataclass
from enum import Enum
import json
from typing import Any, Dict

from pastepatch.patch_exceptions import PatchSettingsError


class ApplyMode(Enum):
    """Enumeration of the ways hunks can be located in a buffer."""
    AUTO = "auto"
    LINE_NUMBER = "line"
    CARET_ANCHOR = "caret"


@dataclass
class PatchSettings:
    """
    Settings for patch application.

    This class handles the loading and saving of settings to a JSON file.
    """
    mode: ApplyMode = ApplyMode.AUTO
    strict_alignment: bool = False  # Require every original line to match, not just the first
    context_window: int = 1000  # Characters searched either side of the caret for context
    removal_window: int = 200  # Characters searched either side of the caret for removed text

    def __post_init__(self) -> None:
        if self.context_window < 0 or self.removal_window < 0:
            raise PatchSettingsError(
                "Search windows must not be negative",
                {'context_window': self.context_window, 'removal_window': self.removal_window}
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatchSettings":
        """
        Build settings from a dictionary using the JSON key names.

        Raises:
            PatchSettingsError: If a value is of the wrong kind
        """
        if not isinstance(data, dict):
            raise PatchSettingsError("Settings must be a JSON object")

        try:
            return cls(
                mode=ApplyMode(data.get("mode", ApplyMode.AUTO.value)),
                strict_alignment=bool(data.get("strictAlignment", False)),
                context_window=int(data.get("contextWindow", 1000)),
                removal_window=int(data.get("removalWindow", 200)),
            )

        except (TypeError, ValueError) as e:
            raise PatchSettingsError(f"Invalid patch settings: {str(e)}", {'settings': data}) from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "strictAlignment": self.strict_alignment,
            "contextWindow": self.context_window,
            "removalWindow": self.removal_window,
        }

    @classmethod
    def load(cls, path: str) -> "PatchSettings":
        """Load settings from a JSON file."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)

        except (OSError, json.JSONDecodeError) as e:
            raise PatchSettingsError(f"Failed to load patch settings from {path}: {str(e)}") from e

        return cls.from_dict(data)

    def save(self, path: str) -> None:
        """Save settings to a JSON file."""
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2)

        except OSError as e:
            raise PatchSettingsError(f"Failed to save patch settings to {path}: {str(e)}") from e
