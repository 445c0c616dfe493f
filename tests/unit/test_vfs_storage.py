"""
Unit tests for the fsspec storage backend, using fsspec's in-memory filesystem.
"""

import uuid
from datetime import datetime, timezone

import fsspec
import pytest

from storage_navigator.storage.adapter import BackendUnavailable, ListingUnavailable, NotFound
from storage_navigator.storage.vfs import VfsStorage, info_timestamp


@pytest.fixture
def memory_root():
    """Populate a unique root in the shared memory filesystem."""
    fs = fsspec.filesystem("memory")
    root = f"/navigator-{uuid.uuid4().hex}"
    fs.mkdir(root)
    fs.mkdir(f"{root}/dir1")
    fs.pipe(f"{root}/file1.txt", b"test")
    fs.pipe(f"{root}/dir1/nested.md", b"# nested\n")
    yield fs, root
    fs.rm(root, recursive=True)


@pytest.fixture
def storage(memory_root):
    fs, root = memory_root
    return VfsStorage(fs=fs, root=root)


class TestInfoTimestamp:
    """Tests for modification time extraction."""

    def test_epoch_number(self):
        assert info_timestamp({"mtime": 12.7}) == 12

    def test_datetime(self):
        value = datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc)
        assert info_timestamp({"LastModified": value}) == 60

    def test_native_string(self):
        assert info_timestamp({"updated": "2024-01-01T00:00:00Z"}) == "2024-01-01T00:00:00Z"

    def test_missing(self):
        assert info_timestamp({"size": 1}) is None


class TestVfsStorage:
    """Tests for VfsStorage over the memory filesystem."""

    def test_unknown_protocol(self):
        with pytest.raises(BackendUnavailable):
            VfsStorage(protocol="no-such-protocol")

    def test_root_listing(self, storage):
        listing = storage.listing("")

        assert [d.name for d in listing.directories()] == ["dir1"]
        assert [f.name for f in listing.files()] == ["file1.txt"]
        assert listing.files()[0].byte_size == 4
        assert listing.files()[0].directory_path == ""

    def test_nested_listing(self, storage):
        listing = storage.listing("dir1/")
        assert listing.names() == ["nested.md"]
        assert listing.files()[0].path == "dir1/nested.md"

    def test_listing_missing(self, storage):
        with pytest.raises(ListingUnavailable):
            storage.listing("missing")

    def test_exists(self, storage):
        assert storage.exists("")
        assert storage.exists("dir1")
        assert storage.exists("dir1/nested.md")
        assert not storage.exists("nope")

    def test_download(self, storage):
        stream = storage.download("file1.txt")
        assert stream.size == 4
        assert stream.mime_type == "text/plain"
        assert stream.read() == b"test"

    def test_download_missing(self, storage):
        with pytest.raises(NotFound):
            storage.download("missing.txt")

    def test_download_directory(self, storage):
        with pytest.raises(NotFound):
            storage.download("dir1")
