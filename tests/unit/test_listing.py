"""
Unit tests for the entity model and the listing builder.
"""

import pytest

from storage_navigator.listing import (
    DirectoryEntry,
    FileEntry,
    Listing,
    ListingBuilder,
    human_size,
    sort_listing,
)


class TestFileEntry:
    """Tests for FileEntry."""

    def test_extension_is_derived(self):
        entry = FileEntry("docs/", "report.PDF", 10)
        assert entry.extension == "PDF"

    def test_explicit_extension_is_kept(self):
        entry = FileEntry("", "archive.tar.gz", 10, extension="tar.gz")
        assert entry.extension == "tar.gz"

    def test_path_joins_directory_and_name(self):
        assert FileEntry("docs/", "readme.md").path == "docs/readme.md"
        assert FileEntry("", "readme.md").path == "readme.md"

    def test_kind(self):
        entry = FileEntry("", "a.txt")
        assert entry.is_file()
        assert not entry.is_dir()

    @pytest.mark.parametrize("name", ["", "a/b.txt", "a\\b.txt"])
    def test_invalid_name_rejected(self, name):
        with pytest.raises(ValueError):
            FileEntry("", name)

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError):
            FileEntry("", "a.txt", -1)

    def test_unknown_metadata_is_none(self):
        entry = FileEntry("", "a.txt")
        assert entry.byte_size is None
        assert entry.last_modified is None


class TestDirectoryEntry:
    """Tests for DirectoryEntry."""

    def test_full_path(self):
        assert DirectoryEntry("img", "docs/").full_path == "docs/img"

    def test_kind(self):
        entry = DirectoryEntry("img", "")
        assert entry.is_dir()
        assert not entry.is_file()

    def test_separator_in_name_rejected(self):
        with pytest.raises(ValueError):
            DirectoryEntry("a/b", "")


class TestHumanSize:
    """Tests for human_size."""

    @pytest.mark.parametrize("size,expected", [
        (0, {"value": 0.0, "unit": "B"}),
        (4, {"value": 4.0, "unit": "B"}),
        (1024, {"value": 1.0, "unit": "KB"}),
        (1536, {"value": 1.5, "unit": "KB"}),
        (5 * 1024 ** 3, {"value": 5.0, "unit": "GB"}),
        (3 * 1024 ** 5, {"value": 3072.0, "unit": "TB"}),
    ])
    def test_units(self, size, expected):
        assert human_size(size) == expected

    def test_unknown_size(self):
        assert human_size(None) is None


class TestListingBuilder:
    """Tests for ListingBuilder and Listing."""

    def test_sort_puts_directories_first(self):
        listing = (
            ListingBuilder()
            .add_file(FileEntry("", "b.txt"))
            .add_directory(DirectoryEntry("zeta", ""))
            .add_file(FileEntry("", "a.txt"))
            .add_directory(DirectoryEntry("alpha", ""))
            .sort_by_name()
            .build()
        )
        assert listing.names() == ["alpha", "zeta", "a.txt", "b.txt"]

    def test_sort_is_case_sensitive(self):
        listing = (
            ListingBuilder()
            .add_file(FileEntry("", "b.txt"))
            .add_file(FileEntry("", "B.txt"))
            .add_file(FileEntry("", "a.txt"))
            .sort_by_name()
            .build()
        )
        assert listing.names() == ["B.txt", "a.txt", "b.txt"]

    def test_unsorted_keeps_insertion_order(self):
        listing = (
            ListingBuilder()
            .add_file(FileEntry("", "b.txt"))
            .add_directory(DirectoryEntry("a", ""))
            .build()
        )
        assert listing.names() == ["b.txt", "a"]

    def test_duplicates_are_dropped(self):
        builder = ListingBuilder()
        builder.add_directory(DirectoryEntry("a", ""))
        builder.add_directory(DirectoryEntry("a", ""))
        builder.add_file(FileEntry("", "a"))
        assert len(builder) == 2

    def test_sorting_is_idempotent(self):
        listing = (
            ListingBuilder()
            .add_file(FileEntry("", "c.txt"))
            .add_directory(DirectoryEntry("b", ""))
            .add_file(FileEntry("", "a.txt"))
            .sort_by_name()
            .build()
        )
        assert sort_listing(listing) == listing
        assert sort_listing(sort_listing(listing)).names() == listing.names()

    def test_listing_is_immutable_value(self):
        listing = Listing([FileEntry("", "a.txt")])
        with pytest.raises(AttributeError):
            listing.entries.append(FileEntry("", "b.txt"))
        assert Listing([FileEntry("", "a.txt")]) == listing
        assert hash(Listing([FileEntry("", "a.txt")])) == hash(listing)

    def test_files_and_directories(self):
        listing = Listing([DirectoryEntry("d", ""), FileEntry("", "f.txt")])
        assert [f.name for f in listing.files()] == ["f.txt"]
        assert [d.name for d in listing.directories()] == ["d"]

    def test_to_list(self):
        listing = Listing([
            DirectoryEntry("img", "docs/", last_modified=10),
            FileEntry("docs/", "readme.md", 2048, last_modified=20),
        ])
        items = listing.to_list()

        assert items[0] == {"type": "dir", "name": "img", "path": "docs/", "last_modified": 10}
        assert items[1]["type"] == "file"
        assert items[1]["extension"] == "md"
        assert items[1]["size"] == 2048
        assert items[1]["human_size"] == {"value": 2.0, "unit": "KB"}
