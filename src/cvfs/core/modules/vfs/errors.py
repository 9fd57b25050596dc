"""Translation of host filesystem errors into the user-facing error taxonomy."""

import errno
from collections.abc import Iterator
from contextlib import contextmanager

from cvfs.errors import (
    AccessDeniedError,
    AlreadyExistsError,
    InternalError,
    NotAFileError,
    NotAFolderError,
    NotEmptyError,
    NotFoundError,
    UserError,
)


def translate_os_error(exc: OSError, path: str) -> UserError | InternalError:
    """Map an OSError raised for a virtual path to a taxonomy error.

    Only the virtual path appears in messages; physical paths stay on the server.
    """
    match exc.errno:
        case errno.ENOENT:
            return NotFoundError(f"'{path}' not found")
        case errno.EEXIST:
            return AlreadyExistsError(f"'{path}' already exists")
        case errno.ENOTEMPTY:
            return NotEmptyError(f"Folder '{path}' is not empty")
        case errno.EISDIR:
            return NotAFileError(f"'{path}' is a folder, not a file")
        case errno.ENOTDIR:
            return NotAFolderError(f"A component of '{path}' is a file, not a folder")
        case errno.EACCES | errno.EPERM:
            return AccessDeniedError(f"Permission denied for '{path}'")
        case _:
            return InternalError(f"Filesystem error on '{path}': {exc.strerror or exc}")


@contextmanager
def os_errors(path: str) -> Iterator[None]:
    """Re-raise OSErrors inside the block as taxonomy errors for path."""
    try:
        yield
    except OSError as e:
        raise translate_os_error(e, path) from e
