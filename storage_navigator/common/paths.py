"""
Path helpers shared by every storage backend.

All locations handled by the navigator are POSIX-style strings. Backslashes
are accepted on input and converted to forward slashes.
"""

import posixpath
from typing import List, Optional


def to_posix(path: str) -> str:
    """Convert backslashes to forward slashes."""
    return path.replace("\\", "/")


def normalized_parent(path: str) -> str:
    """
    Compute the canonical parent directory of a path.

    The result always ends with exactly one trailing '/', except when the
    parent is the current-directory marker, in which case the empty string
    (root) is returned.

    Examples:
        'a/b/c.txt' -> 'a/b/'
        'a/b/'      -> 'a/'
        'c.txt'     -> ''
        '/c.txt'    -> '/'
        ''          -> ''

    Args:
        path: File or directory path

    Returns:
        Normalized parent path
    """
    posix = to_posix(path)
    directory = posixpath.dirname(posix.rstrip("/") or posix[:1])

    if directory in ("", "."):
        return ""

    return directory.rstrip("/") + "/"


def is_path(value: str) -> bool:
    """Return True if the string contains a path separator of either style."""
    return "/" in value or "\\" in value


def strip_separators(location: str) -> str:
    """Strip leading and trailing separators from a location."""
    return to_posix(location).strip("/")


def join_location(location: str, name: str) -> str:
    """
    Join a child name onto a location without doubling separators.

    An empty location means root, so the child name is returned unchanged.
    """
    location = to_posix(location)
    if not location:
        return name
    return location.rstrip("/") + "/" + name.lstrip("/")


def file_extension(name: str) -> str:
    """
    Derive the extension of a file name.

    Returns the text after the last '.', or '' when there is none.
    Dot-files such as '.env' have no extension.
    """
    _, ext = posixpath.splitext(name)
    return ext[1:] if ext else ""


def resolve_location(location: str) -> Optional[str]:
    """
    Resolve '.' and '..' segments of a location.

    Leading and trailing separators are dropped, so '/a/./b/../c/' becomes
    'a/c'. Returns None when a '..' would climb above the top of the tree.
    """
    segments: List[str] = []
    for segment in strip_separators(location).split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                return None
            segments.pop()
        else:
            segments.append(segment)
    return "/".join(segments)


def is_within_root(target: str, root: str) -> bool:
    """
    Check that a target location resolves to root or one of its descendants.

    A target climbing above the top of the location tree is an escape.
    Leading slashes are ignored so absolute and root-relative spellings of
    the same location compare equal.

    Args:
        target: Location requested by the client
        root: Configured root location

    Returns:
        True if target stays inside root
    """
    resolved_target = resolve_location(target)
    resolved_root = resolve_location(root)
    if resolved_target is None or resolved_root is None:
        return False
    if not resolved_root:
        return True
    return resolved_target == resolved_root or resolved_target.startswith(resolved_root + "/")
