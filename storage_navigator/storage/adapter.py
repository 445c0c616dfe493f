"""
Abstract base class for storage backends.

Defines the interface that all storage implementations must follow, the
download stream they hand back, and the errors they raise.
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterable, Iterator, Optional

from storage_navigator.listing.entries import Listing

CHUNK_SIZE = 64 * 1024


class StorageError(Exception):
    """Exception raised for storage-related errors."""
    pass


class BackendUnavailable(StorageError):
    """The backend could not be reached or the connection was refused."""
    pass


class ListingUnavailable(StorageError):
    """A listing call failed on an otherwise usable backend."""
    pass


class NotFound(StorageError):
    """The requested file or location does not exist."""
    pass


class DownloadStream:
    """
    Byte stream of one file plus its transfer metadata.

    Iterating yields chunks straight from the backend. The optional cleanup
    callback releases whatever the backend opened for the transfer (file
    handles, data connections, temporary files); it runs exactly once, when
    iteration ends, fails, or close() is called.
    """

    def __init__(
        self,
        chunks: Iterable[bytes],
        filename: str,
        size: Optional[int] = None,
        mime_type: Optional[str] = None,
        cleanup: Optional[Callable[[], None]] = None,
    ):
        self._chunks = chunks
        self.filename = filename
        self.size = size
        self.mime_type = mime_type
        self._cleanup = cleanup
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        try:
            for chunk in self._chunks:
                if chunk:
                    yield chunk
        finally:
            self.close()

    def read(self) -> bytes:
        """Read the whole stream into memory. Intended for small files and tests."""
        return b"".join(self)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        close_chunks = getattr(self._chunks, "close", None)
        if close_chunks is not None:
            close_chunks()
        if self._cleanup is not None:
            self._cleanup()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def iter_file(file, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield fixed-size chunks from a binary file-like object until EOF."""
    while True:
        chunk = file.read(chunk_size)
        if not chunk:
            break
        yield chunk


class StorageAdapter(ABC):
    """
    Abstract base class for storage backends.

    All storage implementations (local disk, FTP, SFTP, S3, fsspec, archives)
    must implement these methods to provide a consistent interface. Locations
    are POSIX-style strings; '' is the backend root.
    """

    #: Label used for metrics and log records
    backend_name = "abstract"

    @abstractmethod
    def exists(self, location: str) -> bool:
        """
        Check if a file or directory exists.

        Args:
            location: Location string

        Returns:
            True if the location exists, False otherwise
        """
        pass

    @abstractmethod
    def listing(self, location: str) -> Listing:
        """
        List the direct children of a location.

        Args:
            location: Directory location ('' for root)

        Returns:
            Listing of files and directories

        Raises:
            ListingUnavailable: If the backend listing call fails
        """
        pass

    @abstractmethod
    def download(self, path: str) -> DownloadStream:
        """
        Open a file for streaming download.

        Args:
            path: File location

        Returns:
            DownloadStream with size and MIME type when known

        Raises:
            NotFound: If the file does not exist
        """
        pass

    def close(self) -> None:
        """Release any connection held by the adapter."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
