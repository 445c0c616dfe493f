"""
FTP storage backend implementation.

Wraps an ftplib connection. NLST does not report entry types, so each child
is probed with CWD to decide whether it is a directory.
"""

import ftplib
import logging
import mimetypes
import posixpath
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional

from storage_navigator.common.metrics import track_download, track_listing
from storage_navigator.common.paths import join_location, normalized_parent, strip_separators
from storage_navigator.listing.builder import ListingBuilder
from storage_navigator.listing.entries import DirectoryEntry, FileEntry, Listing
from storage_navigator.storage.adapter import (
    CHUNK_SIZE,
    BackendUnavailable,
    DownloadStream,
    ListingUnavailable,
    NotFound,
    StorageAdapter,
)

logger = logging.getLogger(__name__)


def parse_mdtm(response: str) -> Optional[int]:
    """
    Parse an MDTM reply ('213 YYYYMMDDHHMMSS[.sss]') to epoch seconds (UTC).

    Returns None if the reply cannot be parsed.
    """
    try:
        code, value = response.split(None, 1)
        if code != "213":
            return None
        parsed = datetime.strptime(value.strip()[:14], "%Y%m%d%H%M%S")
    except ValueError:
        return None
    return int(parsed.replace(tzinfo=timezone.utc).timestamp())


class FtpStorage(StorageAdapter):
    """
    FTP-based storage implementation.

    One instance holds one control connection and is not meant to be shared
    between concurrent requests. Call close() (or use it as a context
    manager) to release the connection.
    """

    backend_name = "ftp"

    def __init__(
        self,
        host: str,
        username: str = "anonymous",
        password: str = "",
        port: int = 21,
        root_dir: str = "/",
        passive: bool = True,
        timeout: float = 30.0,
        ftp_factory: Callable[..., ftplib.FTP] = ftplib.FTP,
    ):
        """
        Connect and log in to an FTP server.

        Args:
            host: Server hostname or IP address
            username: Login name
            password: Login password
            port: Control port
            root_dir: Remote directory that maps to location ''
            passive: Use passive mode data connections
            timeout: Socket timeout in seconds
            ftp_factory: Callable building the ftplib.FTP client

        Raises:
            BackendUnavailable: If the connection or login fails
        """
        self.host = host
        self.root_dir = root_dir or "/"

        try:
            self.ftp = ftp_factory(timeout=timeout)
            self.ftp.connect(host, port)
            self.ftp.login(username, password)
            self.ftp.set_pasv(passive)
            # SIZE is only reliable in binary mode
            self.ftp.voidcmd("TYPE I")
        except ftplib.all_errors as e:
            logger.error(f"FTP connection to {host}:{port} failed: {e}")
            raise BackendUnavailable(f"Could not connect to FTP server {host}:{port}: {e}") from e

        logger.info(f"Connected to FTP server {host}:{port} as {username}")

    def _remote_path(self, location: str) -> str:
        """Map a location onto the server path below root_dir."""
        relative = strip_separators(location)
        root = self.root_dir.rstrip("/")
        return f"{root}/{relative}" if relative else (root or "/")

    def _is_directory(self, remote_path: str) -> bool:
        """Probe a path with CWD; any failure means it is not a directory."""
        try:
            original = self.ftp.pwd()
            self.ftp.cwd(remote_path)
        except ftplib.all_errors:
            return False

        try:
            self.ftp.cwd(original)
        except ftplib.all_errors as e:
            logger.warning(f"Could not return to {original} after probing {remote_path}: {e}")
        return True

    def _size(self, remote_path: str) -> Optional[int]:
        try:
            return self.ftp.size(remote_path)
        except ftplib.all_errors as e:
            logger.debug(f"SIZE failed for {remote_path}: {e}")
            return None

    def _mtime(self, remote_path: str) -> Optional[int]:
        try:
            return parse_mdtm(self.ftp.voidcmd(f"MDTM {remote_path}"))
        except ftplib.all_errors as e:
            logger.debug(f"MDTM failed for {remote_path}: {e}")
            return None

    @track_listing("ftp")
    def listing(self, location: str) -> Listing:
        """List the direct children of a remote directory."""
        remote_location = self._remote_path(location)

        try:
            names = self.ftp.nlst(remote_location)
        except ftplib.error_perm as e:
            # Some servers answer 550 for an empty directory
            if str(e).startswith("550") and self._is_directory(remote_location):
                names = []
            else:
                raise ListingUnavailable(f"Could not list {location!r} on FTP server: {e}") from e
        except ftplib.all_errors as e:
            raise ListingUnavailable(f"Could not list {location!r} on FTP server: {e}") from e

        builder = ListingBuilder()
        relative_location = strip_separators(location)

        for raw_name in names:
            # Servers differ: bare names or full paths
            name = posixpath.basename(raw_name.rstrip("/"))
            if name in ("", ".", ".."):
                continue

            remote_child = posixpath.join(remote_location, name)
            child_location = join_location(relative_location, name)

            try:
                if self._is_directory(remote_child):
                    builder.add_directory(DirectoryEntry(
                        name=name,
                        path=normalized_parent(child_location),
                        last_modified=self._mtime(remote_child),
                    ))
                else:
                    builder.add_file(FileEntry(
                        directory_path=normalized_parent(child_location),
                        name=name,
                        byte_size=self._size(remote_child),
                        last_modified=self._mtime(remote_child),
                    ))
            except ValueError as e:
                logger.warning(f"Skipping unlistable entry {name!r} in {location!r}: {e}")

        return builder.sort_by_name().build()

    def exists(self, location: str) -> bool:
        """A location exists if CWD into it succeeds or SIZE answers."""
        remote_path = self._remote_path(location)
        if self._is_directory(remote_path):
            return True
        return self._size(remote_path) is not None

    def _stream(self, connection) -> Iterator[bytes]:
        while True:
            chunk = connection.recv(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk

    def _finish_transfer(self, connection) -> None:
        connection.close()
        try:
            self.ftp.voidresp()
        except ftplib.all_errors as e:
            logger.warning(f"FTP transfer did not complete cleanly: {e}")

    @track_download("ftp")
    def download(self, path: str) -> DownloadStream:
        """Stream a file over a data connection."""
        remote_path = self._remote_path(path)
        size = self._size(remote_path)

        try:
            connection = self.ftp.transfercmd(f"RETR {remote_path}")
        except ftplib.error_perm as e:
            raise NotFound(f"File not found on FTP server: {path}") from e
        except ftplib.all_errors as e:
            raise BackendUnavailable(f"Could not start FTP download of {path!r}: {e}") from e

        filename = posixpath.basename(remote_path)
        mime_type, _ = mimetypes.guess_type(filename)
        return DownloadStream(
            chunks=self._stream(connection),
            filename=filename,
            size=size,
            mime_type=mime_type,
            cleanup=lambda: self._finish_transfer(connection),
        )

    def close(self) -> None:
        """Close the control connection."""
        try:
            self.ftp.quit()
        except ftplib.all_errors:
            self.ftp.close()
