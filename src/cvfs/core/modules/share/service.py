import asyncio
from uuid import UUID

import structlog

from cvfs.core.core import Service
from cvfs.core.modules.sandbox.paths import ROOT, is_root, join_virtual_path, virtual_basename
from cvfs.core.modules.share.models import ShareRecord, ShareView
from cvfs.core.modules.vfs import storage
from cvfs.core.modules.vfs.errors import os_errors
from cvfs.core.store import JsonCollection
from cvfs.errors import AlreadyExistsError, NotFoundError, ValidationError
from cvfs.utils import now

logger = structlog.get_logger(__name__)


class ShareService(Service):
    """User-to-user sharing: pending proposals that become copies when accepted.

    Accepting copies whatever exists at the source path at that moment;
    the source is not locked between share and accept. The service lock only
    guards record transitions; the copy itself runs outside it.
    """

    def __init__(self) -> None:
        super().__init__()
        self._records: list[ShareRecord] = []
        self._lock = asyncio.Lock()
        self._accepting: set[UUID] = set()  # Records whose copy is running outside the lock

    @property
    def _collection(self) -> JsonCollection[ShareRecord]:
        return JsonCollection(self.core.data_path / "shares.json", ShareRecord)

    async def on_start(self) -> None:
        self._records = await self._collection.load()
        logger.debug("share_service_started", share_count=len(self._records))

    async def share_item(self, owner_id: UUID, path: str, target_user_id: UUID) -> ShareRecord:
        """Propose sharing path with another user. Nothing is copied yet.

        Raises:
            NotFoundError: If the target user or the path does not exist
            ValidationError: If sharing with oneself or sharing the root folder
        """
        if not self.core.services.user.has_user(target_user_id):
            raise NotFoundError(f"User '{target_user_id}' not found")
        if target_user_id == owner_id:
            raise ValidationError("Cannot share an item with yourself")

        virtual_path = self.core.services.sandbox.normalize(path)
        if is_root(virtual_path):
            raise ValidationError("Cannot share the root folder")
        if not await self.core.services.vfs.exists(owner_id, virtual_path):
            raise NotFoundError(f"'{virtual_path}' not found")

        record = ShareRecord(
            source_user_id=owner_id,
            target_user_id=target_user_id,
            path=virtual_path,
            name=virtual_basename(virtual_path),
        )
        async with self._lock:
            self._records.append(record)
            await self._save()

        logger.info("item_shared", share_id=record.id, source_user_id=owner_id, target_user_id=target_user_id, path=virtual_path)
        self.core.services.broadcast.notify(target_user_id, ())
        return record

    def list_pending(self, user_id: UUID) -> list[ShareView]:
        """Pending shares targeting the user, oldest first."""
        users = self.core.services.user
        views = []
        for record in self._records:
            if record.target_user_id != user_id or not record.is_pending:
                continue
            source_username = users.get_user(record.source_user_id).username if users.has_user(record.source_user_id) else ""
            views.append(
                ShareView(
                    id=record.id,
                    name=record.name,
                    path=record.path,
                    source_user_id=record.source_user_id,
                    source_username=source_username,
                    created_at=record.created_at,
                )
            )
        return views

    async def accept_share(self, user_id: UUID, name: str) -> ShareRecord:
        """Copy the shared item into the root of the accepting user's sandbox.

        Raises:
            NotFoundError: If there is no pending share with that name, or its source is gone
            AlreadyExistsError: If the accepting user already has an item with that name
        """
        sandbox = self.core.services.sandbox
        async with self._lock:
            record = self._find_pending(user_id, name)
            self._accepting.add(record.id)

        try:
            source = sandbox.resolve(record.source_user_id, record.path)
            destination_path = join_virtual_path(ROOT, record.name)
            destination = sandbox.resolve(user_id, destination_path)
            with os_errors(destination_path):
                try:
                    await asyncio.to_thread(storage.copy_entry, source, destination)
                except FileNotFoundError as e:
                    raise NotFoundError(f"Shared item '{record.name}' no longer exists") from e
                except FileExistsError as e:
                    raise AlreadyExistsError(f"'{destination_path}' already exists") from e

            async with self._lock:
                record.accepted = True
                record.resolved_at = now()
                await self._save()
        finally:
            self._accepting.discard(record.id)

        logger.info("share_accepted", share_id=record.id, user_id=user_id, name=record.name)
        self.core.services.broadcast.notify(user_id, (ROOT,))
        return record

    async def deny_share(self, user_id: UUID, name: str) -> ShareRecord:
        """Reject a pending share; nothing is copied.

        Raises:
            NotFoundError: If there is no pending share with that name
        """
        async with self._lock:
            record = self._find_pending(user_id, name)
            record.denied = True
            record.resolved_at = now()
            await self._save()

        logger.info("share_denied", share_id=record.id, user_id=user_id, name=record.name)
        return record

    def _find_pending(self, user_id: UUID, name: str) -> ShareRecord:
        for record in self._records:
            if record.target_user_id != user_id or record.name != name:
                continue
            if record.is_pending and record.id not in self._accepting:
                return record
        raise NotFoundError(f"No pending share named '{name}'")

    async def _save(self) -> None:
        await self._collection.save(self._records)
