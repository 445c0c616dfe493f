"""
Navigation requests and the sources that classify them.

An action source turns inbound request data into exactly one
NavigationRequest: show the root, change to a path, or download a file.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class InvalidNavigationRequest(ValueError):
    """Inbound request data names an action but is missing its path."""
    pass


class NavigationAction(str, Enum):
    """What the client asked for. Values match the form field protocol."""
    NONE = "none"
    CHANGE_PATH = "changePath"
    DOWNLOAD_FILE = "downloadFile"


@dataclass(frozen=True)
class NavigationRequest:
    """
    One classified navigation request.

    Carries a single action, so change-path and download can never both be
    requested at once. path is required for every action except NONE.
    """
    action: NavigationAction = NavigationAction.NONE
    path: Optional[str] = None

    def __post_init__(self):
        if self.action is not NavigationAction.NONE and self.path is None:
            raise InvalidNavigationRequest(f"Action {self.action.value} requires a path")

    @classmethod
    def none(cls) -> "NavigationRequest":
        return cls()

    @classmethod
    def change_path(cls, path: str) -> "NavigationRequest":
        return cls(NavigationAction.CHANGE_PATH, path)

    @classmethod
    def download_file(cls, path: str) -> "NavigationRequest":
        return cls(NavigationAction.DOWNLOAD_FILE, path)

    @property
    def is_change_path(self) -> bool:
        return self.action is NavigationAction.CHANGE_PATH

    @property
    def is_download_file(self) -> bool:
        return self.action is NavigationAction.DOWNLOAD_FILE


class ActionSource(ABC):
    """Classifies one inbound request."""

    @abstractmethod
    def classify(self) -> NavigationRequest:
        pass


class FormActionSource(ActionSource):
    """
    Classifies submitted form data.

    Recognised fields:
        action: 'changePath' or 'downloadFile'
        path: target directory for changePath
        file: target file for downloadFile

    Any other or missing action means no navigation was requested.
    """

    PATH_FIELDS = {
        NavigationAction.CHANGE_PATH: "path",
        NavigationAction.DOWNLOAD_FILE: "file",
    }

    def __init__(self, form: Optional[Mapping[str, Any]] = None):
        self.form = form or {}

    def classify(self) -> NavigationRequest:
        raw_action = self.form.get("action")
        try:
            action = NavigationAction(raw_action)
        except ValueError:
            return NavigationRequest.none()

        if action is NavigationAction.NONE:
            return NavigationRequest.none()

        field = self.PATH_FIELDS[action]
        path = self.form.get(field)
        if path is None:
            raise InvalidNavigationRequest(f"Field '{field}' is required for action {action.value}")
        return NavigationRequest(action, str(path))


class NullActionSource(ActionSource):
    """Never requests navigation; the root listing is always shown."""

    def classify(self) -> NavigationRequest:
        return NavigationRequest.none()
