"""
Archive container storage backends (ZIP and TAR).

Archives are flat key spaces: members are full path strings, and listings
are synthesized one level at a time with collapse_to_one_level. Members
cannot be streamed independently of the container, so downloads are
extracted to a temporary file first.
"""

import logging
import mimetypes
import os
import posixpath
import shutil
import tarfile
import tempfile
import zipfile
from abc import abstractmethod
from datetime import datetime
from typing import IO, List, Optional

from storage_navigator.common.metrics import track_download, track_listing
from storage_navigator.common.paths import strip_separators, to_posix
from storage_navigator.listing.entries import Listing
from storage_navigator.storage.adapter import (
    BackendUnavailable,
    DownloadStream,
    NotFound,
    StorageAdapter,
    StorageError,
    iter_file,
)
from storage_navigator.storage.flatkey import FlatKey, collapse_to_one_level, key_space_contains

logger = logging.getLogger(__name__)


def _member_key(name: str) -> str:
    key = to_posix(name)
    while key.startswith("./"):
        key = key[2:]
    return key.lstrip("/")


class ArchiveStorage(StorageAdapter):
    """
    Base class for archive-backed storage.

    Subclasses enumerate members as FlatKeys and open a single member for
    reading; listing, existence and the temp-file download are shared.
    """

    backend_name = "archive"

    def __init__(self, archive_path: str):
        self.archive_path = archive_path

    @abstractmethod
    def _members(self) -> List[FlatKey]:
        """Every member of the archive; directory markers end with '/'."""
        pass

    @abstractmethod
    def _open_member(self, key: str) -> Optional[IO[bytes]]:
        """Open a regular file member, or return None if there is none."""
        pass

    @track_listing("archive")
    def listing(self, location: str) -> Listing:
        """List the direct children of a location inside the archive."""
        return collapse_to_one_level(self._members(), location)

    def exists(self, location: str) -> bool:
        return key_space_contains((member.key for member in self._members()), location)

    def _extract_to_temp(self, key: str, path: str) -> str:
        """Copy one member into a temporary file and return its path."""
        try:
            source = self._open_member(key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to open {path!r} in archive: {e}") from e
        if source is None:
            raise NotFound(f"File not found in archive: {path}")

        suffix = posixpath.splitext(key)[1]
        try:
            fd, temp_path = tempfile.mkstemp(prefix="storage-navigator-", suffix=suffix)
        except OSError as e:
            source.close()
            raise StorageError(f"Failed to create temporary file for {path!r}: {e}") from e
        try:
            with os.fdopen(fd, "wb") as target, source:
                shutil.copyfileobj(source, target)
        except BaseException as e:
            os.unlink(temp_path)
            if isinstance(e, Exception):
                raise StorageError(f"Failed to extract {path!r} from archive: {e}") from e
            raise

        logger.debug(f"Extracted {key} to {temp_path}")
        return temp_path

    @track_download("archive")
    def download(self, path: str) -> DownloadStream:
        """Extract a member to a temporary file and stream it."""
        key = strip_separators(path)
        temp_path = self._extract_to_temp(key, path)

        try:
            handle = open(temp_path, "rb")
        except OSError as e:
            os.unlink(temp_path)
            raise StorageError(f"Failed to reopen extracted file {path!r}: {e}") from e

        def cleanup() -> None:
            handle.close()
            try:
                os.unlink(temp_path)
            except FileNotFoundError:
                pass

        filename = posixpath.basename(key)
        mime_type, _ = mimetypes.guess_type(filename)
        return DownloadStream(
            chunks=iter_file(handle),
            filename=filename,
            size=os.path.getsize(temp_path),
            mime_type=mime_type,
            cleanup=cleanup,
        )


class ZipArchiveStorage(ArchiveStorage):
    """ZIP archive storage implementation."""

    backend_name = "zip"

    def __init__(self, archive_path: str):
        """
        Open a ZIP archive for browsing.

        Raises:
            BackendUnavailable: If the file is missing or not a valid ZIP
        """
        super().__init__(archive_path)
        try:
            self.archive = zipfile.ZipFile(archive_path, "r")
        except (OSError, zipfile.BadZipFile) as e:
            logger.error(f"Could not open ZIP archive {archive_path}: {e}")
            raise BackendUnavailable(f"Could not open ZIP archive {archive_path}: {e}") from e

        logger.info(f"Opened ZIP archive {archive_path}")

    def _members(self) -> List[FlatKey]:
        members = []
        for info in self.archive.infolist():
            try:
                last_modified = int(datetime(*info.date_time).timestamp())
            except (ValueError, OverflowError):
                last_modified = None
            members.append(FlatKey(
                key=_member_key(info.filename),
                size=None if info.is_dir() else info.file_size,
                last_modified=last_modified,
            ))
        return members

    def _open_member(self, key: str) -> Optional[IO[bytes]]:
        for info in self.archive.infolist():
            if _member_key(info.filename) == key and not info.is_dir():
                return self.archive.open(info, "r")
        return None

    def close(self) -> None:
        self.archive.close()


class TarArchiveStorage(ArchiveStorage):
    """TAR archive storage implementation (plain, gzip, bzip2 or xz)."""

    backend_name = "tar"

    def __init__(self, archive_path: str):
        """
        Open a TAR archive for browsing; compression is detected.

        Raises:
            BackendUnavailable: If the file is missing or not a valid TAR
        """
        super().__init__(archive_path)
        try:
            self.archive = tarfile.open(archive_path, "r:*")
        except (OSError, tarfile.TarError) as e:
            logger.error(f"Could not open TAR archive {archive_path}: {e}")
            raise BackendUnavailable(f"Could not open TAR archive {archive_path}: {e}") from e

        logger.info(f"Opened TAR archive {archive_path}")

    def _members(self) -> List[FlatKey]:
        members = []
        for member in self.archive.getmembers():
            key = _member_key(member.name)
            if not key or key == ".":
                continue
            if member.isdir():
                members.append(FlatKey(key=key.rstrip("/") + "/", last_modified=int(member.mtime)))
            else:
                members.append(FlatKey(key=key, size=member.size, last_modified=int(member.mtime)))
        return members

    def _open_member(self, key: str) -> Optional[IO[bytes]]:
        for member in self.archive.getmembers():
            if _member_key(member.name) == key and member.isfile():
                return self.archive.extractfile(member)
        return None

    def close(self) -> None:
        self.archive.close()


def open_archive(archive_path: str) -> ArchiveStorage:
    """
    Open an archive with the adapter matching its format.

    Raises:
        BackendUnavailable: If the file is missing or of an unknown format
    """
    if not os.path.isfile(archive_path):
        raise BackendUnavailable(f"Archive not found: {archive_path}")

    if zipfile.is_zipfile(archive_path):
        return ZipArchiveStorage(archive_path)
    try:
        is_tar = tarfile.is_tarfile(archive_path)
    except OSError as e:
        raise BackendUnavailable(f"Could not read archive {archive_path}: {e}") from e
    if is_tar:
        return TarArchiveStorage(archive_path)

    raise BackendUnavailable(f"Unsupported archive format: {archive_path}")
