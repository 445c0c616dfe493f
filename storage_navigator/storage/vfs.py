"""
Virtual filesystem backend implementation.

Adapts any fsspec filesystem (local, memory, s3fs, gcsfs, sftp, zip, ...)
to the navigator's storage interface.
"""

import logging
import mimetypes
import posixpath
from datetime import datetime
from typing import Any, Optional

import fsspec

from storage_navigator.common.metrics import track_download, track_listing
from storage_navigator.common.paths import join_location, normalized_parent, strip_separators
from storage_navigator.listing.builder import ListingBuilder
from storage_navigator.listing.entries import DirectoryEntry, FileEntry, Listing, Timestamp
from storage_navigator.storage.adapter import (
    BackendUnavailable,
    DownloadStream,
    ListingUnavailable,
    NotFound,
    StorageAdapter,
    iter_file,
)

logger = logging.getLogger(__name__)

# Keys used by common fsspec implementations for modification time
TIME_KEYS = ("mtime", "LastModified", "last_modified", "updated", "modified", "created")


def info_timestamp(info: dict) -> Optional[Timestamp]:
    """Extract a modification time from an fsspec info dict."""
    for key in TIME_KEYS:
        value = info.get(key)
        if value is None:
            continue
        if isinstance(value, datetime):
            return int(value.timestamp())
        if isinstance(value, (int, float)):
            return int(value)
        return str(value)
    return None


class VfsStorage(StorageAdapter):
    """
    fsspec-based storage implementation.

    Usage:
        storage = VfsStorage(protocol="file", root="/srv/share")
        storage = VfsStorage(fs=fsspec.filesystem("memory"), root="/")
    """

    backend_name = "vfs"

    def __init__(
        self,
        fs: Optional[Any] = None,
        protocol: str = "file",
        root: str = "",
        **storage_options,
    ):
        """
        Initialize virtual filesystem storage.

        Args:
            fs: Existing fsspec filesystem; built from protocol if None
            protocol: fsspec protocol name
            root: Path inside the filesystem that maps to location ''
            **storage_options: Passed to fsspec.filesystem

        Raises:
            BackendUnavailable: If the filesystem cannot be created
        """
        self.root = root
        if fs is None:
            try:
                fs = fsspec.filesystem(protocol, **storage_options)
            except (ImportError, ValueError, OSError) as e:
                raise BackendUnavailable(f"Could not open {protocol!r} filesystem: {e}") from e
        self.fs = fs

    def _full_path(self, location: str) -> str:
        relative = strip_separators(location)
        if not self.root:
            return relative
        return posixpath.join(self.root, relative)

    @track_listing("vfs")
    def listing(self, location: str) -> Listing:
        """List the direct children of a directory."""
        full_path = self._full_path(location)
        try:
            infos = self.fs.ls(full_path, detail=True)
        except (OSError, ValueError) as e:
            raise ListingUnavailable(f"Could not list {location!r}: {e}") from e

        builder = ListingBuilder()
        relative_location = strip_separators(location)
        own_name = full_path.rstrip("/")

        for info in infos:
            entry_path = info["name"].rstrip("/")
            name = posixpath.basename(entry_path)
            # Some implementations include the listed directory itself
            if not name or entry_path == own_name:
                continue

            child_location = join_location(relative_location, name)
            try:
                if info.get("type") == "directory":
                    builder.add_directory(DirectoryEntry(
                        name=name,
                        path=normalized_parent(child_location),
                        last_modified=info_timestamp(info),
                    ))
                else:
                    builder.add_file(FileEntry(
                        directory_path=normalized_parent(child_location),
                        name=name,
                        byte_size=info.get("size"),
                        last_modified=info_timestamp(info),
                    ))
            except ValueError as e:
                logger.warning(f"Skipping unlistable entry {name!r} in {location!r}: {e}")

        return builder.sort_by_name().build()

    def exists(self, location: str) -> bool:
        try:
            return self.fs.exists(self._full_path(location))
        except (OSError, ValueError) as e:
            logger.warning(f"exists() failed for {location}: {e}")
            return False

    @track_download("vfs")
    def download(self, path: str) -> DownloadStream:
        """Stream a file from the filesystem."""
        full_path = self._full_path(path)
        try:
            if not self.fs.isfile(full_path):
                raise NotFound(f"File not found: {path}")
            size = self.fs.size(full_path)
            handle = self.fs.open(full_path, "rb")
        except FileNotFoundError as e:
            raise NotFound(f"File not found: {path}") from e
        except (OSError, ValueError) as e:
            raise BackendUnavailable(f"Could not open {path!r}: {e}") from e

        filename = posixpath.basename(full_path)
        mime_type, _ = mimetypes.guess_type(filename)
        return DownloadStream(
            chunks=iter_file(handle),
            filename=filename,
            size=size,
            mime_type=mime_type,
            cleanup=handle.close,
        )
