"""
Display configuration for the navigator.

Validated once at construction; unknown keys and malformed values fail fast
with an InvalidConfiguration naming the offending key.
"""

import re
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

INVALID_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')
VALID_EXTENSION = re.compile(r"^[a-zA-Z0-9]+(?:\.[a-zA-Z0-9]+)*$")

DEFAULT_DATE_FORMAT = "%b %d %Y %H:%M"


class InvalidConfiguration(ValueError):
    """Raised when configuration contains an unknown key or a bad value."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration - {key}: {reason}")


class BrowserConfig(BaseModel):
    """Date display format and the names/extensions hidden from listings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    date_format: str = DEFAULT_DATE_FORMAT
    ignore_filenames: List[str] = []
    ignore_extensions: List[str] = []

    @field_validator("ignore_filenames")
    @classmethod
    def validate_filenames(cls, value: List[str]) -> List[str]:
        invalid = [name for name in value if not name or INVALID_FILENAME_CHARS.search(name)]
        if invalid:
            raise ValueError(f"[{', '.join(invalid)}] containing invalid characters")
        return value

    @field_validator("ignore_extensions")
    @classmethod
    def validate_extensions(cls, value: List[str]) -> List[str]:
        invalid = [ext for ext in value if not VALID_EXTENSION.match(ext)]
        if invalid:
            raise ValueError(f"[{', '.join(invalid)}] containing invalid characters")
        return value

    @classmethod
    def from_mapping(cls, config: Optional[Mapping[str, Any]] = None) -> "BrowserConfig":
        """
        Build a validated configuration from a plain mapping.

        Args:
            config: User-provided settings merged over the defaults

        Returns:
            BrowserConfig instance

        Raises:
            InvalidConfiguration: On the first unknown key or invalid value
        """
        try:
            return cls(**dict(config or {}))
        except ValidationError as e:
            error = e.errors()[0]
            key = ".".join(str(part) for part in error["loc"]) or "<root>"
            if error["type"] == "extra_forbidden":
                raise InvalidConfiguration(key, "configuration key is invalid") from e
            reason = error["msg"].removeprefix("Value error, ")
            raise InvalidConfiguration(key, reason) from e
