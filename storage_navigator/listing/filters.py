"""
Predicate-based filtering of listings.

A filter set is an ordered list of pure predicates combined with AND. The
FilterBuilder offers factories for the common predicates; apply_filters
narrows a Listing in a single pass while preserving order.
"""

from typing import Callable, Iterable, List, Sequence, Union

from storage_navigator.listing.entries import Entry, Listing

Predicate = Callable[[Entry], bool]


def _as_list(values: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(values, str):
        return [values]
    return list(values)


class FilterBuilder:
    """
    Accumulates predicates for narrowing a Listing.

    Every factory appends exactly one predicate and returns the builder, so
    calls chain:

        filters = FilterBuilder().is_file().extension_equals(["jpg", "png"])
    """

    def __init__(self):
        self._filters: List[Predicate] = []

    def add(self, predicate: Predicate) -> "FilterBuilder":
        self._filters.append(predicate)
        return self

    def extend(self, other: Union["FilterBuilder", Sequence[Predicate]]) -> "FilterBuilder":
        """Append every predicate of another builder or sequence."""
        predicates = other.get_filters() if isinstance(other, FilterBuilder) else other
        self._filters.extend(predicates)
        return self

    def get_filters(self) -> List[Predicate]:
        return list(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    # Kind

    def is_file(self) -> "FilterBuilder":
        return self.add(lambda entry: entry.is_file())

    def is_directory(self) -> "FilterBuilder":
        return self.add(lambda entry: entry.is_dir())

    # Name, for files and directories alike

    def name_equals(self, names: Union[str, Iterable[str]]) -> "FilterBuilder":
        names = frozenset(_as_list(names))
        return self.add(lambda entry: entry.name in names)

    def name_not_equals(self, names: Union[str, Iterable[str]]) -> "FilterBuilder":
        names = frozenset(_as_list(names))
        return self.add(lambda entry: entry.name not in names)

    def name_contains(self, substrings: Union[str, Iterable[str]]) -> "FilterBuilder":
        substrings = tuple(_as_list(substrings))
        return self.add(lambda entry: any(s in entry.name for s in substrings))

    def name_not_contains(self, substrings: Union[str, Iterable[str]]) -> "FilterBuilder":
        substrings = tuple(_as_list(substrings))
        return self.add(lambda entry: not any(s in entry.name for s in substrings))

    # Extension; directories never satisfy these

    def extension_equals(self, extensions: Union[str, Iterable[str]]) -> "FilterBuilder":
        extensions = frozenset(_as_list(extensions))
        return self.add(lambda entry: entry.is_file() and entry.extension in extensions)

    def extension_not_equals(self, extensions: Union[str, Iterable[str]]) -> "FilterBuilder":
        extensions = frozenset(_as_list(extensions))
        return self.add(lambda entry: entry.is_file() and entry.extension not in extensions)

    def extension_contains(self, substrings: Union[str, Iterable[str]]) -> "FilterBuilder":
        substrings = tuple(_as_list(substrings))
        return self.add(
            lambda entry: entry.is_file() and any(s in entry.extension for s in substrings)
        )

    def extension_not_contains(self, substrings: Union[str, Iterable[str]]) -> "FilterBuilder":
        substrings = tuple(_as_list(substrings))
        return self.add(
            lambda entry: entry.is_file() and not any(s in entry.extension for s in substrings)
        )

    @classmethod
    def from_config(cls, config) -> "FilterBuilder":
        """
        Build the suppression filters described by a BrowserConfig.

        Entries named in ignore_filenames are hidden. Files whose lower-cased
        extension is in ignore_extensions are hidden; directories are kept.
        """
        builder = cls()
        if config.ignore_filenames:
            builder.name_not_equals(config.ignore_filenames)
        if config.ignore_extensions:
            ignored = frozenset(ext.lower() for ext in config.ignore_extensions)
            builder.add(
                lambda entry: entry.is_dir() or entry.extension.lower() not in ignored
            )
        return builder


def apply_filters(
    listing: Listing,
    filters: Union[FilterBuilder, Sequence[Predicate], None],
) -> Listing:
    """
    Keep exactly the entries that satisfy every predicate.

    An empty or missing filter set returns an equal listing.

    Args:
        listing: Listing to narrow
        filters: FilterBuilder or sequence of predicates

    Returns:
        New Listing with input order preserved
    """
    if filters is None:
        return listing

    predicates = filters.get_filters() if isinstance(filters, FilterBuilder) else list(filters)
    if not predicates:
        return listing

    return Listing(
        entry for entry in listing
        if all(predicate(entry) for predicate in predicates)
    )
