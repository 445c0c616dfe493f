"""
Navigation engine: request classification, rendering and the facade.
"""

from storage_navigator.navigation.actions import (
    ActionSource,
    FormActionSource,
    InvalidNavigationRequest,
    NavigationAction,
    NavigationRequest,
    NullActionSource,
)
from storage_navigator.navigation.navigator import (
    InvalidRoot,
    NavigatorError,
    PathOutsideRoot,
    StorageNavigator,
)
from storage_navigator.navigation.renderers import (
    ConsoleRenderer,
    JsonRenderer,
    NullRenderer,
    RenderData,
    Renderer,
)

__all__ = [
    "ActionSource",
    "FormActionSource",
    "InvalidNavigationRequest",
    "NavigationAction",
    "NavigationRequest",
    "NullActionSource",
    "InvalidRoot",
    "NavigatorError",
    "PathOutsideRoot",
    "StorageNavigator",
    "ConsoleRenderer",
    "JsonRenderer",
    "NullRenderer",
    "RenderData",
    "Renderer",
]
