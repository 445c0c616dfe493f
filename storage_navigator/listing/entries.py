"""
Uniform entity model for storage listings.

Every backend produces FileEntry and DirectoryEntry values; a Listing is the
ordered, immutable collection of them for one location.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

from storage_navigator.common.paths import file_extension, is_path

# Epoch seconds, or a backend-native timestamp string when no conversion applies
Timestamp = Union[int, str]

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def human_size(byte_size: Optional[int]) -> Optional[dict]:
    """
    Format a byte count as a value/unit pair.

    Args:
        byte_size: Size in bytes, or None when unknown

    Returns:
        {'value': float, 'unit': str} or None
    """
    if byte_size is None:
        return None

    byte_size = max(byte_size, 0)
    power = (byte_size.bit_length() - 1) // 10 if byte_size else 0
    power = min(power, len(SIZE_UNITS) - 1)
    return {
        "value": round(byte_size / (1 << (10 * power)), 2),
        "unit": SIZE_UNITS[power],
    }


def _check_name(name: str) -> None:
    if not name:
        raise ValueError("Entry name must not be empty")
    if is_path(name):
        raise ValueError(f"Entry name must not contain path separators: {name!r}")


@dataclass(frozen=True)
class FileEntry:
    """A file inside a listing."""
    directory_path: str  # normalized parent, '' for root
    name: str
    byte_size: Optional[int] = None  # None when the backend cannot report it
    last_modified: Optional[Timestamp] = None
    extension: str = field(default=None)

    def __post_init__(self):
        _check_name(self.name)
        if self.byte_size is not None and self.byte_size < 0:
            raise ValueError(f"Negative size for {self.name!r}: {self.byte_size}")
        if self.extension is None:
            object.__setattr__(self, "extension", file_extension(self.name))

    @property
    def path(self) -> str:
        """Location of the file, usable for a download request."""
        return self.directory_path + self.name

    def is_file(self) -> bool:
        return True

    def is_dir(self) -> bool:
        return False


@dataclass(frozen=True)
class DirectoryEntry:
    """A directory inside a listing."""
    name: str
    path: str  # normalized parent, '' for root
    last_modified: Optional[Timestamp] = None

    def __post_init__(self):
        _check_name(self.name)

    @property
    def full_path(self) -> str:
        """Location of the directory itself, usable for a change-path request."""
        return self.path + self.name

    def is_file(self) -> bool:
        return False

    def is_dir(self) -> bool:
        return True


Entry = Union[FileEntry, DirectoryEntry]


def entry_key(entry: Entry) -> Tuple[str, str, str]:
    """Identity of an entry within one listing: kind, parent path, name."""
    if entry.is_file():
        return ("file", entry.directory_path, entry.name)
    return ("dir", entry.path, entry.name)


class Listing:
    """
    Ordered, immutable collection of entries for one location.

    Built fresh for every navigation request via ListingBuilder.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries=()):
        self._entries: Tuple[Entry, ...] = tuple(entries)

    @property
    def entries(self) -> Tuple[Entry, ...]:
        return self._entries

    def files(self) -> List[FileEntry]:
        return [e for e in self._entries if e.is_file()]

    def directories(self) -> List[DirectoryEntry]:
        return [e for e in self._entries if e.is_dir()]

    def names(self) -> List[str]:
        return [e.name for e in self._entries]

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Listing):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"Listing({list(self._entries)!r})"

    def to_list(self) -> List[dict]:
        """Render-ready representation of the entries."""
        items = []
        for entry in self._entries:
            if entry.is_file():
                items.append({
                    "type": "file",
                    "name": entry.name,
                    "path": entry.directory_path,
                    "extension": entry.extension,
                    "size": entry.byte_size,
                    "human_size": human_size(entry.byte_size),
                    "last_modified": entry.last_modified,
                })
            else:
                items.append({
                    "type": "dir",
                    "name": entry.name,
                    "path": entry.path,
                    "last_modified": entry.last_modified,
                })
        return items
