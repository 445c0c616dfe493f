"""
SFTP storage backend implementation.

Uses paramiko. Entry types come from a stat probe on each listed name.
"""

import errno
import logging
import mimetypes
import posixpath
import stat
from typing import Optional

import paramiko

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


class SftpStorage(StorageAdapter):
    """
    SFTP-based storage implementation.

    Either connects itself (host/credentials) or wraps an already opened
    paramiko.SFTPClient. Not meant to be shared between concurrent requests.
    """

    backend_name = "sftp"

    def __init__(
        self,
        host: str = "",
        username: str = "",
        password: str = "",
        port: int = 22,
        root_dir: str = "/",
        sftp_client: Optional[paramiko.SFTPClient] = None,
    ):
        """
        Initialize SFTP storage.

        Args:
            host: Server hostname or IP address
            username: Login name
            password: Login password
            port: SSH port
            root_dir: Remote directory that maps to location ''; empty means
                the login directory
            sftp_client: Pre-opened client; skips connecting when given

        Raises:
            BackendUnavailable: If the SSH connection or login fails
        """
        self.root_dir = root_dir.rstrip("/") + "/" if root_dir else ""
        self._ssh: Optional[paramiko.SSHClient] = None

        if sftp_client is not None:
            self.sftp = sftp_client
            return

        try:
            self._ssh = paramiko.SSHClient()
            self._ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
            self._ssh.connect(
                hostname=host,
                port=port,
                username=username,
                password=password,
                look_for_keys=False,
                allow_agent=False,
            )
            self.sftp = self._ssh.open_sftp()
        except (paramiko.SSHException, OSError) as e:
            logger.error(f"SFTP connection to {host}:{port} failed: {e}")
            if self._ssh is not None:
                self._ssh.close()
            raise BackendUnavailable(f"SFTP login to {host}:{port} failed: {e}") from e

        logger.info(f"Connected to SFTP server {host}:{port} as {username}")

    def _remote_path(self, location: str) -> str:
        relative = strip_separators(location)
        if not relative:
            return self.root_dir or "."
        return self.root_dir + relative

    def _stat(self, remote_path: str) -> Optional[paramiko.SFTPAttributes]:
        try:
            return self.sftp.stat(remote_path)
        except (IOError, paramiko.SSHException) as e:
            logger.debug(f"stat failed for {remote_path}: {e}")
            return None

    @staticmethod
    def _is_directory(attributes: Optional[paramiko.SFTPAttributes]) -> bool:
        return (
            attributes is not None
            and attributes.st_mode is not None
            and stat.S_ISDIR(attributes.st_mode)
        )

    @track_listing("sftp")
    def listing(self, location: str) -> Listing:
        """List the direct children of a remote directory."""
        remote_location = self._remote_path(location)

        try:
            names = self.sftp.listdir(remote_location)
        except (IOError, paramiko.SSHException) as e:
            raise ListingUnavailable(f"Could not list {location!r} on SFTP server: {e}") from e

        builder = ListingBuilder()
        relative_location = strip_separators(location)

        for name in names:
            if name in (".", ".."):
                continue

            attributes = self._stat(posixpath.join(remote_location, name))
            child_location = join_location(relative_location, name)
            last_modified = attributes.st_mtime if attributes is not None else None

            try:
                if self._is_directory(attributes):
                    builder.add_directory(DirectoryEntry(
                        name=name,
                        path=normalized_parent(child_location),
                        last_modified=last_modified,
                    ))
                else:
                    # A failed probe still lists the entry, as a file without metadata
                    builder.add_file(FileEntry(
                        directory_path=normalized_parent(child_location),
                        name=name,
                        byte_size=attributes.st_size if attributes is not None else None,
                        last_modified=last_modified,
                    ))
            except ValueError as e:
                logger.warning(f"Skipping unlistable entry {name!r} in {location!r}: {e}")

        return builder.sort_by_name().build()

    def exists(self, location: str) -> bool:
        return self._stat(self._remote_path(location)) is not None

    @track_download("sftp")
    def download(self, path: str) -> DownloadStream:
        """Stream a remote file."""
        remote_path = self._remote_path(path)
        attributes = self._stat(remote_path)
        if attributes is None or self._is_directory(attributes):
            raise NotFound(f"File not found on SFTP server: {path}")

        try:
            handle = self.sftp.open(remote_path, "rb")
        except IOError as e:
            if getattr(e, "errno", None) == errno.ENOENT:
                raise NotFound(f"File not found on SFTP server: {path}") from e
            raise BackendUnavailable(f"Could not open {path!r} on SFTP server: {e}") from e

        filename = posixpath.basename(remote_path)
        mime_type, _ = mimetypes.guess_type(filename)
        return DownloadStream(
            chunks=iter_file(handle),
            filename=filename,
            size=attributes.st_size,
            mime_type=mime_type,
            cleanup=handle.close,
        )

    def close(self) -> None:
        self.sftp.close()
        if self._ssh is not None:
            self._ssh.close()
