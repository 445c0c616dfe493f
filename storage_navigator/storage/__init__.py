"""
Storage backend abstraction for browsing and downloading.

Provides adapters for local disk, FTP, SFTP, S3, fsspec filesystems,
archive containers and a no-op backend.
"""

from storage_navigator.storage.adapter import (
    BackendUnavailable,
    DownloadStream,
    ListingUnavailable,
    NotFound,
    StorageAdapter,
    StorageError,
)
from storage_navigator.storage.archive import (
    TarArchiveStorage,
    ZipArchiveStorage,
    open_archive,
)
from storage_navigator.storage.factory import create_storage_adapter
from storage_navigator.storage.filesystem import FilesystemStorage
from storage_navigator.storage.ftp import FtpStorage
from storage_navigator.storage.noop import NullStorage
from storage_navigator.storage.s3 import S3Storage
from storage_navigator.storage.sftp import SftpStorage
from storage_navigator.storage.vfs import VfsStorage

__all__ = [
    "BackendUnavailable",
    "DownloadStream",
    "ListingUnavailable",
    "NotFound",
    "StorageAdapter",
    "StorageError",
    "TarArchiveStorage",
    "ZipArchiveStorage",
    "open_archive",
    "create_storage_adapter",
    "FilesystemStorage",
    "FtpStorage",
    "NullStorage",
    "S3Storage",
    "SftpStorage",
    "VfsStorage",
]
