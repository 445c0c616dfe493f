"""
Storage factory for creating storage adapter instances.

Builds the backend selected by configuration. Adapters holding live
connections are not shared, so every call returns a fresh instance.
"""

import logging
from typing import Optional

from storage_navigator.config.settings import Settings, get_settings
from storage_navigator.storage.adapter import StorageAdapter
from storage_navigator.storage.archive import open_archive
from storage_navigator.storage.filesystem import FilesystemStorage
from storage_navigator.storage.ftp import FtpStorage
from storage_navigator.storage.noop import NullStorage
from storage_navigator.storage.s3 import S3Storage
from storage_navigator.storage.sftp import SftpStorage
from storage_navigator.storage.vfs import VfsStorage

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("local", "ftp", "sftp", "s3", "vfs", "archive", "null")


def create_storage_adapter(settings: Optional[Settings] = None) -> StorageAdapter:
    """
    Create the configured storage adapter.

    Args:
        settings: Settings to read; the cached application settings if None

    Returns:
        A new StorageAdapter instance; the caller is responsible for close()

    Raises:
        ValueError: If the storage backend is not supported
        BackendUnavailable: If the backend cannot be reached
    """
    settings = settings or get_settings()
    backend = settings.storage_backend.lower()

    if backend in ("local", "fs://", "filesystem"):
        adapter = FilesystemStorage(base_path=settings.local_base_path)
    elif backend in ("ftp", "ftp://"):
        adapter = FtpStorage(
            host=settings.ftp_host,
            username=settings.ftp_username,
            password=settings.ftp_password,
            port=settings.ftp_port,
            root_dir=settings.ftp_root_dir,
            passive=settings.ftp_passive,
            timeout=settings.ftp_timeout,
        )
    elif backend in ("sftp", "sftp://"):
        adapter = SftpStorage(
            host=settings.sftp_host,
            username=settings.sftp_username,
            password=settings.sftp_password,
            port=settings.sftp_port,
            root_dir=settings.sftp_root_dir,
        )
    elif backend in ("s3", "s3://"):
        adapter = S3Storage(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint_url,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            region=settings.aws_region,
        )
    elif backend == "vfs":
        adapter = VfsStorage(protocol=settings.vfs_protocol, root=settings.vfs_root)
    elif backend == "archive":
        adapter = open_archive(settings.archive_path)
    elif backend == "null":
        adapter = NullStorage(exists_default=settings.null_exists_default)
    else:
        raise ValueError(
            f"Unsupported storage backend: {settings.storage_backend}. "
            f"Supported backends: {', '.join(SUPPORTED_BACKENDS)}"
        )

    logger.debug(f"Created {adapter.backend_name} storage adapter")
    return adapter
