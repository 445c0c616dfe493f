"""
Builder for Listing values.

Accumulates entries in insertion order, optionally sorts them, and yields an
immutable Listing.
"""

from typing import List

from storage_navigator.listing.entries import (
    DirectoryEntry,
    Entry,
    FileEntry,
    Listing,
    entry_key,
)


class ListingBuilder:
    """
    Mutable accumulator for a Listing.

    Usage:
        listing = (
            ListingBuilder()
            .add_directory(DirectoryEntry("docs", ""))
            .add_file(FileEntry("", "readme.md", 120))
            .sort_by_name()
            .build()
        )
    """

    def __init__(self):
        self._items: List[Entry] = []
        self._seen = set()

    def _add(self, entry: Entry) -> "ListingBuilder":
        key = entry_key(entry)
        # A listing never holds the same kind/path/name twice
        if key not in self._seen:
            self._seen.add(key)
            self._items.append(entry)
        return self

    def add_file(self, file: FileEntry) -> "ListingBuilder":
        return self._add(file)

    def add_directory(self, directory: DirectoryEntry) -> "ListingBuilder":
        return self._add(directory)

    def add(self, entry: Entry) -> "ListingBuilder":
        return self._add(entry)

    def sort_by_name(self) -> "ListingBuilder":
        """
        Directories first, then files, each group by name (A-Z).

        Comparison is case-sensitive; the sort is stable, so equal names keep
        insertion order.
        """
        directories = [i for i in self._items if i.is_dir()]
        files = [i for i in self._items if i.is_file()]
        directories.sort(key=lambda d: d.name)
        files.sort(key=lambda f: f.name)
        self._items = directories + files
        return self

    def __len__(self) -> int:
        return len(self._items)

    def build(self) -> Listing:
        return Listing(self._items)


def sort_listing(listing: Listing) -> Listing:
    """Return a name-sorted copy of an existing listing."""
    builder = ListingBuilder()
    for entry in listing:
        builder.add(entry)
    return builder.sort_by_name().build()
