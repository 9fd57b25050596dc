import asyncio
from pathlib import Path
from uuid import UUID

import structlog

from cvfs.core.core import Service
from cvfs.core.modules.sandbox.paths import is_root, is_within, join_virtual_path, parent_virtual_path, virtual_basename
from cvfs.core.modules.vfs import storage
from cvfs.core.modules.vfs.errors import os_errors
from cvfs.core.modules.vfs.models import FileDownload, ItemMetadata, ItemType, VfsItem
from cvfs.core.modules.vfs.utils import guess_media_type, sanitize_name
from cvfs.errors import AlreadyExistsError, NotAFileError, ValidationError
from cvfs.utils import from_timestamp

logger = structlog.get_logger(__name__)


class VfsService(Service):
    """File and folder operations inside a single user's sandbox.

    Every path argument is a virtual path; it is resolved through the
    sandbox service before the filesystem is touched. Blocking calls run in
    worker threads. Mutations notify the broadcaster with the affected
    parent folders.
    """

    async def list_items(self, user_id: UUID, path: str) -> list[VfsItem]:
        """List a folder, or return a single-entry listing for a file.

        Raises:
            NotFoundError: If the path does not exist
        """
        virtual_path, physical = self._resolve(user_id, path)
        with os_errors(virtual_path):
            return await asyncio.to_thread(storage.list_entries, physical)

    async def create_item(self, user_id: UUID, parent_path: str, name: str, item_type: ItemType) -> str:
        """Create an empty file or a folder named name under parent_path.

        Missing parent folders are created. Returns the new virtual path.

        Raises:
            ValidationError: If the name is empty after sanitizing
            AlreadyExistsError: If an entry with that name exists
        """
        clean_name = sanitize_name(name)
        parent, _ = self._resolve(user_id, parent_path)
        virtual_path, physical = self._resolve(user_id, join_virtual_path(parent, clean_name))

        with os_errors(virtual_path):
            if item_type == ItemType.FOLDER:
                await asyncio.to_thread(storage.create_folder, physical)
            else:
                await asyncio.to_thread(storage.create_empty_file, physical)

        logger.debug("item_created", user_id=user_id, path=virtual_path, type=item_type)
        self._notify(user_id, parent)
        return virtual_path

    async def read_file(self, user_id: UUID, path: str) -> str:
        """Read a whole file as UTF-8 text.

        Raises:
            NotFoundError: If the file does not exist
            NotAFileError: If the path is a folder
            ValidationError: If the content is not valid UTF-8
        """
        virtual_path, physical = self._resolve(user_id, path)
        with os_errors(virtual_path):
            try:
                return await asyncio.to_thread(storage.read_text, physical)
            except UnicodeDecodeError as e:
                raise ValidationError(f"'{virtual_path}' is not a UTF-8 text file") from e

    async def write_file(self, user_id: UUID, path: str, content: str) -> None:
        """Replace a file's content; the file is created if its folder exists."""
        virtual_path, physical = self._resolve(user_id, path)
        if is_root(virtual_path):
            raise NotAFileError
        with os_errors(virtual_path):
            await asyncio.to_thread(storage.write_atomic, physical, content.encode("utf-8"))
        logger.debug("file_written", user_id=user_id, path=virtual_path, size=len(content))
        self._notify(user_id, parent_virtual_path(virtual_path))

    async def get_file_download(self, user_id: UUID, path: str) -> FileDownload:
        """Resolve a file for raw download.

        Raises:
            NotFoundError: If the file does not exist
            NotAFileError: If the path is a folder
        """
        virtual_path, physical = self._resolve(user_id, path)
        with os_errors(virtual_path):
            item = await asyncio.to_thread(storage.entry_for, physical)
        if item.type == ItemType.FOLDER:
            raise NotAFileError(f"'{virtual_path}' is a folder, not a file")
        return FileDownload(file_path=physical, filename=item.name, media_type=guess_media_type(item.name))

    async def delete_item(self, user_id: UUID, path: str) -> None:
        """Delete a file or an empty folder.

        Raises:
            NotEmptyError: If the folder has children
        """
        virtual_path, physical = self._resolve(user_id, path)
        self._ensure_not_root(virtual_path, "delete")
        with os_errors(virtual_path):
            await asyncio.to_thread(storage.delete_entry, physical)
        logger.debug("item_deleted", user_id=user_id, path=virtual_path)
        self._notify(user_id, parent_virtual_path(virtual_path))

    async def delete_item_recursive(self, user_id: UUID, path: str) -> None:
        """Delete a file, or a folder with all its descendants."""
        virtual_path, physical = self._resolve(user_id, path)
        self._ensure_not_root(virtual_path, "delete")
        with os_errors(virtual_path):
            await asyncio.to_thread(storage.delete_tree, physical)
        logger.debug("item_deleted_recursive", user_id=user_id, path=virtual_path)
        self._notify(user_id, parent_virtual_path(virtual_path))

    async def move_item(self, user_id: UUID, source_path: str, destination_path: str) -> None:
        """Move or rename an entry within the user's sandbox.

        Raises:
            AlreadyExistsError: If the destination exists
            ValidationError: If the destination lies inside the source
        """
        source, source_physical = self._resolve(user_id, source_path)
        destination, destination_physical = self._resolve(user_id, destination_path)
        self._ensure_transferable(source, destination, "move")

        with os_errors(source):
            try:
                await asyncio.to_thread(storage.move_entry, source_physical, destination_physical)
            except FileExistsError as e:
                raise AlreadyExistsError(f"'{destination}' already exists") from e
        logger.debug("item_moved", user_id=user_id, source=source, destination=destination)
        self._notify(user_id, parent_virtual_path(source), parent_virtual_path(destination))

    async def copy_item(self, user_id: UUID, source_path: str, destination_path: str) -> None:
        """Copy a file or folder tree within the user's sandbox; never overwrites.

        Raises:
            AlreadyExistsError: If the destination exists
            ValidationError: If the destination lies inside the source
        """
        source, source_physical = self._resolve(user_id, source_path)
        destination, destination_physical = self._resolve(user_id, destination_path)
        self._ensure_transferable(source, destination, "copy")

        with os_errors(source):
            try:
                await asyncio.to_thread(storage.copy_entry, source_physical, destination_physical)
            except FileExistsError as e:
                raise AlreadyExistsError(f"'{destination}' already exists") from e
        logger.debug("item_copied", user_id=user_id, source=source, destination=destination)
        self._notify(user_id, parent_virtual_path(destination))

    async def get_metadata(self, user_id: UUID, path: str) -> ItemMetadata:
        virtual_path, physical = self._resolve(user_id, path)
        with os_errors(virtual_path):
            st = await asyncio.to_thread(storage.get_stat, physical)
            item = await asyncio.to_thread(storage.entry_for, physical)
        created = getattr(st, "st_birthtime", st.st_ctime)
        return ItemMetadata(
            name=virtual_basename(virtual_path),
            path=virtual_path,
            type=item.type,
            size=item.size or 0,
            created_at=from_timestamp(created),
            modified_at=from_timestamp(st.st_mtime),
        )

    async def upload_file(self, user_id: UUID, folder_path: str, file_name: str, content: bytes) -> str:
        """Store an uploaded blob in folder_path, creating folders as needed.

        An existing file with the same name is replaced. Returns the new virtual path.
        """
        clean_name = sanitize_name(file_name)
        folder, folder_physical = self._resolve(user_id, folder_path)
        virtual_path, physical = self._resolve(user_id, join_virtual_path(folder, clean_name))

        with os_errors(virtual_path):
            await asyncio.to_thread(storage.make_folders, folder_physical)
            await asyncio.to_thread(storage.write_atomic, physical, content)
        logger.debug("file_uploaded", user_id=user_id, path=virtual_path, size=len(content))
        self._notify(user_id, folder)
        return virtual_path

    async def exists(self, user_id: UUID, path: str) -> bool:
        _, physical = self._resolve(user_id, path)
        return await asyncio.to_thread(physical.exists)

    def _resolve(self, user_id: UUID, path: str) -> tuple[str, Path]:
        sandbox = self.core.services.sandbox
        virtual_path = sandbox.normalize(path)
        return virtual_path, sandbox.resolve(user_id, virtual_path)

    def _ensure_not_root(self, virtual_path: str, action: str) -> None:
        if is_root(virtual_path):
            raise ValidationError(f"Cannot {action} the root folder")

    def _ensure_transferable(self, source: str, destination: str, action: str) -> None:
        self._ensure_not_root(source, action)
        if is_within(destination, source):
            raise ValidationError(f"Cannot {action} '{source}' into itself")

    def _notify(self, user_id: UUID, *paths: str) -> None:
        self.core.services.broadcast.notify(user_id, paths)

