"""
Output strategies for rendered listings.

The navigator hands a RenderData to a renderer and never inspects what the
renderer produces. Each renderer also supplies the action source used when
the caller does not pass one explicitly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, TextIO

from storage_navigator.common.paths import normalized_parent, strip_separators
from storage_navigator.config.browser import BrowserConfig
from storage_navigator.listing.entries import Listing, Timestamp
from storage_navigator.navigation.actions import ActionSource, NullActionSource


@dataclass(frozen=True)
class RenderData:
    """Everything a renderer needs for one listing."""
    current_path: str
    root_path: str
    listing: Listing
    config: BrowserConfig = field(default_factory=BrowserConfig)

    @property
    def at_root(self) -> bool:
        return strip_separators(self.current_path) == strip_separators(self.root_path)

    @property
    def parent_path(self) -> Optional[str]:
        """Location one level up, or None when already at the root."""
        if self.at_root:
            return None
        return normalized_parent(strip_separators(self.current_path))


def format_timestamp(value: Optional[Timestamp], date_format: str) -> str:
    """Format an epoch timestamp; backend-native strings pass through."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return datetime.fromtimestamp(value).strftime(date_format)
    except (OverflowError, OSError, ValueError):
        return ""


class Renderer(ABC):
    """Base class for listing renderers."""

    @abstractmethod
    def render(self, data: RenderData) -> Any:
        pass

    def action_source(self) -> ActionSource:
        """Default action source for requests rendered by this renderer."""
        return NullActionSource()


class NullRenderer(Renderer):
    """Discards every listing."""

    def render(self, data: RenderData) -> None:
        return None


class ConsoleRenderer(Renderer):
    """
    Plain-text listing in the style of 'dir' or 'ls -la'.

    The text is returned and, when a stream is given, also written to it.
    Console output has no way to send navigation back, so the default
    action source never navigates.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def render(self, data: RenderData) -> str:
        date_format = data.config.date_format
        lines = [
            f"Location: /{strip_separators(data.current_path)}",
            f"{'Modified':<20} {'Size':>14}  Name",
            "-" * 60,
        ]

        for entry in data.listing:
            modified = format_timestamp(entry.last_modified, date_format)
            if entry.is_dir():
                size = "<DIR>"
            elif entry.byte_size is None:
                size = "?"
            else:
                size = f"{entry.byte_size:,}"
            lines.append(f"{modified:<20} {size:>14}  {entry.name}")

        file_count = len(data.listing.files())
        total_bytes = sum(entry.byte_size or 0 for entry in data.listing.files())
        lines.append(f"{file_count:>16} File(s) {total_bytes:>14,} bytes")
        lines.append(f"{len(data.listing.directories()):>16} Dir(s)")

        output = "\n".join(lines) + "\n"
        if self.stream is not None:
            self.stream.write(output)
        return output


class JsonRenderer(Renderer):
    """Render-ready dict, as served by the HTTP API."""

    def render(self, data: RenderData) -> dict:
        date_format = data.config.date_format
        entries = data.listing.to_list()
        for item in entries:
            item["modified"] = format_timestamp(item["last_modified"], date_format)

        return {
            "current_path": strip_separators(data.current_path),
            "root_path": strip_separators(data.root_path),
            "parent_path": data.parent_path,
            "entries": entries,
            "total_files": len(data.listing.files()),
            "total_directories": len(data.listing.directories()),
        }
