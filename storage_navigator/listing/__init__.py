"""
Entity model and filter engine shared by all storage backends.
"""

from storage_navigator.listing.entries import (
    DirectoryEntry,
    Entry,
    FileEntry,
    Listing,
    human_size,
)
from storage_navigator.listing.builder import ListingBuilder, sort_listing
from storage_navigator.listing.filters import FilterBuilder, Predicate, apply_filters

__all__ = [
    "DirectoryEntry",
    "Entry",
    "FileEntry",
    "Listing",
    "human_size",
    "ListingBuilder",
    "sort_listing",
    "FilterBuilder",
    "Predicate",
    "apply_filters",
]
