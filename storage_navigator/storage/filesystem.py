"""
Filesystem storage backend implementation.

Browses a directory tree on the local disk. Every location is relative to
the configured base path; locations that resolve outside it do not exist.
"""

import logging
import mimetypes
from pathlib import Path
from typing import Optional

from storage_navigator.common.metrics import track_download, track_listing
from storage_navigator.common.paths import join_location, normalized_parent, strip_separators
from storage_navigator.listing.builder import ListingBuilder
from storage_navigator.listing.entries import DirectoryEntry, FileEntry, Listing
from storage_navigator.storage.adapter import (
    BackendUnavailable,
    DownloadStream,
    ListingUnavailable,
    NotFound,
    StorageAdapter,
    iter_file,
)

logger = logging.getLogger(__name__)


class FilesystemStorage(StorageAdapter):
    """
    Filesystem-based storage implementation.

    Lists the direct children of a directory with their sizes and
    modification times.
    """

    backend_name = "local"

    def __init__(self, base_path: str = "./storage"):
        """
        Initialize filesystem storage.

        Args:
            base_path: Root directory exposed by the adapter

        Raises:
            BackendUnavailable: If base_path is not an existing directory
        """
        self.base_path = Path(base_path).resolve()
        if not self.base_path.is_dir():
            raise BackendUnavailable(f"Base path is not a directory: {self.base_path}")

    def _location_to_path(self, location: str) -> Optional[Path]:
        """
        Convert a location to a filesystem path.

        Args:
            location: Location relative to base_path

        Returns:
            Absolute Path object, or None if it escapes base_path
        """
        path = (self.base_path / strip_separators(location)).resolve()
        if path != self.base_path and self.base_path not in path.parents:
            logger.warning(f"Location escapes base path: {location}")
            return None
        return path

    @staticmethod
    def _mtime(path: Path) -> Optional[int]:
        try:
            return int(path.stat().st_mtime)
        except OSError as e:
            logger.debug(f"Could not stat {path}: {e}")
            return None

    @staticmethod
    def _size(path: Path) -> Optional[int]:
        try:
            return path.stat().st_size
        except OSError as e:
            logger.debug(f"Could not stat {path}: {e}")
            return None

    @track_listing("local")
    def listing(self, location: str) -> Listing:
        """List the direct children of a directory."""
        directory = self._location_to_path(location)
        if directory is None:
            raise ListingUnavailable(f"Location outside base path: {location}")

        try:
            children = list(directory.iterdir())
        except OSError as e:
            raise ListingUnavailable(f"Failed to list {location!r}: {e}") from e

        builder = ListingBuilder()
        relative_location = strip_separators(location)

        for child in children:
            child_location = join_location(relative_location, child.name)
            try:
                if child.is_dir():
                    builder.add_directory(DirectoryEntry(
                        name=child.name,
                        path=normalized_parent(child_location),
                        last_modified=self._mtime(child),
                    ))
                else:
                    builder.add_file(FileEntry(
                        directory_path=normalized_parent(child_location),
                        name=child.name,
                        byte_size=self._size(child),
                        last_modified=self._mtime(child),
                    ))
            except ValueError as e:
                logger.warning(f"Skipping unlistable entry {child.name!r} in {location!r}: {e}")

        return builder.sort_by_name().build()

    def exists(self, location: str) -> bool:
        """Check if a file or directory exists."""
        path = self._location_to_path(location)
        return path is not None and path.exists()

    @track_download("local")
    def download(self, path: str) -> DownloadStream:
        """Open a file for streaming."""
        file_path = self._location_to_path(path)
        if file_path is None or not file_path.is_file():
            raise NotFound(f"File not found: {path}")

        try:
            handle = open(file_path, "rb")
        except OSError as e:
            raise NotFound(f"Failed to open file {path!r}: {e}") from e

        mime_type, _ = mimetypes.guess_type(file_path.name)
        return DownloadStream(
            chunks=iter_file(handle),
            filename=file_path.name,
            size=self._size(file_path),
            mime_type=mime_type,
            cleanup=handle.close,
        )
