"""
No-op storage backend.

Used for dry runs and for exercising the navigator without a real backend.
"""

from storage_navigator.common.metrics import track_listing
from storage_navigator.listing.entries import Listing
from storage_navigator.storage.adapter import DownloadStream, NotFound, StorageAdapter


class NullStorage(StorageAdapter):
    """Storage with no content. exists() answers a fixed value."""

    backend_name = "null"

    def __init__(self, exists_default: bool = False):
        self.exists_default = exists_default

    def exists(self, location: str) -> bool:
        return self.exists_default

    @track_listing("null")
    def listing(self, location: str) -> Listing:
        return Listing()

    def download(self, path: str) -> DownloadStream:
        raise NotFound(f"Null storage has no files: {path}")
