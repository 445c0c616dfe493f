"""
Directory synthesis for flat key spaces.

Object stores and archive containers have no real directories: every stored
object is a full path string. collapse_to_one_level rebuilds exactly one
level of the tree below a location on demand, without materializing the
rest of it.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from storage_navigator.common.paths import strip_separators, to_posix
from storage_navigator.listing.builder import ListingBuilder
from storage_navigator.listing.entries import (
    DirectoryEntry,
    FileEntry,
    Listing,
    Timestamp,
)


@dataclass(frozen=True)
class FlatKey:
    """One stored object in a flat key space."""
    key: str
    size: Optional[int] = None
    last_modified: Optional[Timestamp] = None


def location_prefix(location: str) -> str:
    """Key prefix for a location: 'a/b' -> 'a/b/', '' or '/' -> ''."""
    normalized = strip_separators(location)
    return f"{normalized}/" if normalized else ""


def _newer(current: Optional[Timestamp], candidate: Optional[Timestamp]) -> Optional[Timestamp]:
    if current is None:
        return candidate
    if candidate is None or type(current) is not type(candidate):
        return current
    return max(current, candidate)


def collapse_to_one_level(
    keys: Iterable[FlatKey],
    location: str,
    sort: bool = True,
) -> Listing:
    """
    Synthesize the direct children of a location from a flat key space.

    Keys outside the location are skipped. A key one segment below the
    location is a file. A key several segments below contributes only its
    first segment, as a directory; each directory name is emitted once, with
    the newest timestamp seen among the keys beneath it. Keys ending in '/'
    (directory markers) therefore yield a directory and never a file.

    Args:
        keys: Every stored object, or a backend pre-filtered subset
        location: Location to list ('' for root)
        sort: Apply directories-first name ordering

    Returns:
        Listing of the location's direct children
    """
    prefix = location_prefix(location)
    builder = ListingBuilder()
    directories: Dict[str, Optional[Timestamp]] = {}

    for item in keys:
        key = to_posix(item.key).lstrip("/")
        if not key.startswith(prefix):
            continue

        relative = key[len(prefix):]
        if not relative:
            continue

        parts = relative.split("/")
        if len(parts) == 1:
            builder.add_file(FileEntry(
                directory_path=prefix,
                name=parts[0],
                byte_size=item.size,
                last_modified=item.last_modified,
            ))
        elif parts[0]:
            name = parts[0]
            directories[name] = _newer(directories.get(name), item.last_modified)

    for name, last_modified in directories.items():
        builder.add_directory(DirectoryEntry(
            name=name,
            path=prefix,
            last_modified=last_modified,
        ))

    if sort:
        builder.sort_by_name()
    return builder.build()


def key_space_contains(keys: Iterable[str], location: str) -> bool:
    """
    Check whether a location exists in a flat key space.

    The root always exists. Otherwise a location exists when it is a stored
    key (file) or when some key lies beneath it (directory).
    """
    normalized = strip_separators(location)
    if not normalized:
        return True

    prefix = normalized + "/"
    for key in keys:
        key = to_posix(key).lstrip("/")
        if key == normalized or key.startswith(prefix):
            return True
    return False
