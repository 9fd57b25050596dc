"""Pure virtual path arithmetic.

Virtual paths are "/"-rooted strings as seen by clients. Nothing in this
module touches the filesystem, so a hostile path is rejected before any
disk access happens.
"""

from pathlib import Path

from cvfs.errors import SecurityError

ROOT = "/"


def split_virtual_path(virtual_path: str) -> list[str]:
    """Split a virtual path into canonical segments.

    Backslashes count as separators, empty and "." segments are dropped and
    ".." removes the previous segment.

    Raises:
        SecurityError: If the path contains a NUL byte or climbs above the root
    """
    if "\x00" in virtual_path:
        raise SecurityError("Path contains a NUL byte")

    segments: list[str] = []
    for segment in virtual_path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise SecurityError
            segments.pop()
            continue
        segments.append(segment)
    return segments


def normalize_virtual_path(virtual_path: str) -> str:
    """Return the canonical absolute form of a virtual path ("" and "/" become "/")."""
    return ROOT + "/".join(split_virtual_path(virtual_path))


def join_virtual_path(parent: str, name: str) -> str:
    """Join a child name onto a virtual folder path."""
    return normalize_virtual_path(f"{parent}/{name}")


def parent_virtual_path(virtual_path: str) -> str:
    """Return the canonical parent of a virtual path. The root is its own parent."""
    segments = split_virtual_path(virtual_path)
    return ROOT + "/".join(segments[:-1])


def virtual_basename(virtual_path: str) -> str:
    """Return the last segment of a virtual path, or "" for the root."""
    segments = split_virtual_path(virtual_path)
    return segments[-1] if segments else ""


def is_root(virtual_path: str) -> bool:
    return not split_virtual_path(virtual_path)


def is_within(virtual_path: str, ancestor: str) -> bool:
    """Check whether virtual_path equals ancestor or lies below it."""
    path_segments = split_virtual_path(virtual_path)
    ancestor_segments = split_virtual_path(ancestor)
    return path_segments[: len(ancestor_segments)] == ancestor_segments


def resolve_in_root(root: Path, virtual_path: str) -> Path:
    """Map a virtual path onto a physical path under root.

    The result is checked lexically to be root itself or one of its
    descendants.

    Raises:
        SecurityError: If the path would resolve outside root
    """
    physical = root.joinpath(*split_virtual_path(virtual_path))
    if physical != root and root not in physical.parents:
        raise SecurityError
    return physical
