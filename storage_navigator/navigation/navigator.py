"""
Storage navigator facade.

Ties an adapter, a renderer and optional filters together and turns one
classified navigation request into either a rendered listing or a download
stream.
"""

import logging
from typing import Any, Optional, Sequence, Union

from storage_navigator.common.logging_config import PerformanceTracker
from storage_navigator.common.metrics import navigation_requests_total
from storage_navigator.common.paths import is_within_root, resolve_location, strip_separators
from storage_navigator.config.browser import BrowserConfig
from storage_navigator.listing.filters import FilterBuilder, Predicate, apply_filters
from storage_navigator.navigation.actions import ActionSource, NavigationRequest
from storage_navigator.navigation.renderers import RenderData, Renderer
from storage_navigator.storage.adapter import DownloadStream, NotFound, StorageAdapter

logger = logging.getLogger(__name__)


class NavigatorError(Exception):
    """Base class for navigator errors."""
    pass


class InvalidRoot(NavigatorError):
    """The configured root location does not exist on the backend."""
    pass


class PathOutsideRoot(NavigatorError):
    """A requested location resolves outside the configured root."""
    pass


class StorageNavigator:
    """
    Facade over one storage adapter and one renderer.

    Usage:
        navigator = StorageNavigator(FilesystemStorage("/srv"), JsonRenderer())
        page = navigator.display(FormActionSource(form))
    """

    def __init__(
        self,
        adapter: StorageAdapter,
        renderer: Renderer,
        root_path: str = "",
        filters: Union[FilterBuilder, Sequence[Predicate], None] = None,
        config: Optional[BrowserConfig] = None,
        enforce_root_confinement: bool = True,
    ):
        """
        Initialize the navigator.

        Args:
            adapter: Storage backend to browse
            renderer: Output strategy for listings
            root_path: Location shown when no navigation is requested
            filters: Extra predicates applied to every rendered listing
            config: Display configuration; its ignore lists become filters
            enforce_root_confinement: Reject targets outside root_path

        Raises:
            InvalidRoot: If root_path does not exist on the adapter
        """
        if not adapter.exists(root_path):
            logger.error(f"Root location does not exist: {root_path!r}")
            raise InvalidRoot(f"Location: [{root_path}] does not exist")

        self.adapter = adapter
        self.renderer = renderer
        self.root_path = root_path
        self.config = config or BrowserConfig()
        self.enforce_root_confinement = enforce_root_confinement

        self.filters = FilterBuilder.from_config(self.config)
        if filters is not None:
            self.filters.extend(filters)

    def display(self, action_source: Optional[ActionSource] = None) -> Any:
        """
        Classify the current request and dispatch it.

        Args:
            action_source: Source of the request; the renderer's default if None

        Returns:
            Renderer output for listings, DownloadStream for downloads
        """
        source = action_source or self.renderer.action_source()
        return self.handle(source.classify())

    def handle(self, request: NavigationRequest) -> Any:
        """Dispatch an already classified navigation request."""
        navigation_requests_total.labels(action=request.action.value).inc()

        if request.is_change_path:
            return self.render_location(self._confine(request.path))
        if request.is_download_file:
            return self.download(request.path)
        return self.render_location(self.root_path)

    def _confine(self, location: str) -> str:
        """
        Resolve a requested location, rejecting escapes from the root.

        Returns:
            Location with '.' and '..' segments resolved

        Raises:
            PathOutsideRoot: If confinement is enforced and location escapes
        """
        if self.enforce_root_confinement and not is_within_root(location, self.root_path):
            logger.warning(
                f"Rejected location outside root: {location!r}",
                extra={"extra_fields": {"location": location, "root_path": self.root_path}},
            )
            raise PathOutsideRoot(f"Location [{location}] is outside of [{self.root_path}]")

        resolved = resolve_location(location)
        return location if resolved is None else resolved

    def render_location(self, location: str) -> Any:
        """List a location, filter it and hand it to the renderer."""
        with PerformanceTracker(
            "listing",
            logger,
            logging.DEBUG,
            backend=self.adapter.backend_name,
            location=location,
        ):
            listing = self.adapter.listing(location)

        listing = apply_filters(listing, self.filters)
        return self.renderer.render(RenderData(
            current_path=location,
            root_path=self.root_path,
            listing=listing,
            config=self.config,
        ))

    def download(self, path: str) -> DownloadStream:
        """
        Open a file for download. Filters never apply to downloads.

        Raises:
            PathOutsideRoot: If confinement is enforced and path escapes root
            NotFound: If the file does not exist
        """
        location = self._confine(path)
        if not strip_separators(location) or not self.adapter.exists(location):
            raise NotFound(f"File [{path}] does not exist.")

        logger.info(
            f"Starting download: {location}",
            extra={"extra_fields": {"backend": self.adapter.backend_name, "path": location}},
        )
        return self.adapter.download(location)
