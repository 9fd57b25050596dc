"""Blocking filesystem primitives on physical paths.

These functions run in worker threads. They raise plain OSErrors; the
caller translates them for the virtual path involved.
"""

import errno
import os
import shutil
import tempfile
from pathlib import Path

from cvfs.core.modules.vfs.models import ItemType, VfsItem


def entry_for(path: Path) -> VfsItem:
    """Describe a single physical entry."""
    st = path.stat()
    if path.is_dir():
        return VfsItem(name=path.name, type=ItemType.FOLDER)
    return VfsItem(name=path.name, type=ItemType.FILE, size=st.st_size)


def list_entries(path: Path) -> list[VfsItem]:
    """List a folder (folders first, then by name), or describe a single file."""
    if not path.is_dir():
        return [entry_for(path)]

    items: list[VfsItem] = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                if entry.is_dir():
                    items.append(VfsItem(name=entry.name, type=ItemType.FOLDER))
                else:
                    items.append(VfsItem(name=entry.name, type=ItemType.FILE, size=entry.stat().st_size))
            except FileNotFoundError:
                # Removed between scandir and stat
                continue
    items.sort(key=lambda item: (item.type != ItemType.FOLDER, item.name.lower(), item.name))
    return items


def make_folders(path: Path) -> None:
    """Create a folder and its missing ancestors; fails with ENOTDIR if one of them is a file."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except FileExistsError as e:
        raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(path)) from e


def create_folder(path: Path) -> None:
    make_folders(path.parent)
    path.mkdir()


def create_empty_file(path: Path) -> None:
    """Create an empty file; fails with EEXIST if anything already has that name."""
    make_folders(path.parent)
    with path.open("x"):
        pass


def ensure_not_folder(path: Path) -> None:
    if path.is_dir():
        raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), str(path))


def read_text(path: Path) -> str:
    ensure_not_folder(path)
    return path.read_bytes().decode("utf-8")


def write_atomic(path: Path, data: bytes) -> None:
    """Replace the file content through a temporary sibling and os.replace."""
    ensure_not_folder(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def delete_entry(path: Path) -> None:
    """Delete a file or an empty folder; non-empty folders fail with ENOTEMPTY."""
    if path.is_dir() and not path.is_symlink():
        path.rmdir()
    else:
        path.unlink()


def delete_tree(path: Path) -> None:
    """Delete a file or a folder with everything below it."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def ensure_absent(path: Path) -> None:
    if path.exists() or path.is_symlink():
        raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), str(path))


def move_entry(source: Path, destination: Path) -> None:
    if not source.exists():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(source))
    ensure_absent(destination)
    make_folders(destination.parent)
    os.rename(source, destination)


def copy_entry(source: Path, destination: Path) -> None:
    """Copy a file, or a folder entry by entry, without overwriting anything."""
    if not source.exists():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(source))
    ensure_absent(destination)
    make_folders(destination.parent)
    if source.is_dir():
        shutil.copytree(source, destination, symlinks=True)
    else:
        shutil.copy2(source, destination)


def get_stat(path: Path) -> os.stat_result:
    return path.stat()
