import asyncio
from collections.abc import Iterable
from contextlib import suppress
from uuid import UUID

import structlog

from cvfs.core.core import Service
from cvfs.core.modules.broadcast.models import Connection, MessageSender
from cvfs.core.modules.session.models import AuthToken
from cvfs.errors import UserError

logger = structlog.get_logger(__name__)


class BroadcastService(Service):
    """Pushes directory listings and change events to connected clients.

    Each connection runs one ticker task that refreshes its watched folder
    every broadcast interval, or immediately when a mutation wakes it.
    """

    def __init__(self) -> None:
        super().__init__()
        self._connections: dict[UUID, set[Connection]] = {}

    async def on_stop(self) -> None:
        for connection in [c for connections in self._connections.values() for c in connections]:
            await self.unregister(connection)

    def register(self, user_id: UUID, auth_token: AuthToken, send: MessageSender) -> Connection:
        """Add a connection to the registry and start its ticker task."""
        connection = Connection(user_id, auth_token, send)
        self._connections.setdefault(user_id, set()).add(connection)
        connection.task = asyncio.create_task(self._run(connection))
        logger.debug("connection_registered", user_id=user_id, connection_id=connection.id)
        return connection

    async def unregister(self, connection: Connection) -> None:
        """Cancel the connection's ticker and remove it from the registry. Idempotent."""
        task, connection.task = connection.task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

        connections = self._connections.get(connection.user_id)
        if connections is not None:
            connections.discard(connection)
            if not connections:
                del self._connections[connection.user_id]
        logger.debug("connection_unregistered", user_id=connection.user_id, connection_id=connection.id)

    def subscribe(self, connection: Connection, path: str) -> str:
        """Watch a folder; the listing is pushed right away and then on every tick.

        Raises:
            SecurityError: If the path escapes the user's root
        """
        connection.watched_path = self.core.services.sandbox.normalize(path)
        connection.signal()
        return connection.watched_path

    def unsubscribe(self, connection: Connection) -> None:
        connection.watched_path = None

    def notify(self, user_id: UUID, paths: Iterable[str]) -> None:
        """Wake every connection of the user with the folders that changed."""
        changed = tuple(paths)
        for connection in self._connections.get(user_id, ()):
            connection.signal(changed)

    def get_connections(self, user_id: UUID) -> list[Connection]:
        return list(self._connections.get(user_id, ()))

    async def _run(self, connection: Connection) -> None:
        interval = self.core.config.broadcast_interval_seconds
        try:
            while True:
                with suppress(TimeoutError):
                    await asyncio.wait_for(connection.wake.wait(), timeout=interval)
                connection.wake.clear()

                if not self.core.services.session.is_active(connection.auth_token):
                    await connection.send({"type": "session-expired"})
                    return

                for path in connection.drain_changes():
                    await connection.send({"event": "file-change", "path": path})

                if connection.watched_path is not None:
                    await self._push_listing(connection, connection.watched_path)
        except asyncio.CancelledError:
            raise
        except Exception:
            # The socket is gone or broken; the receive loop will unregister it
            logger.debug("connection_ticker_stopped", user_id=connection.user_id, connection_id=connection.id, exc_info=True)

    async def _push_listing(self, connection: Connection, path: str) -> None:
        try:
            items = await self.core.services.vfs.list_items(connection.user_id, path)
        except UserError as e:
            await connection.send({"type": "error", "path": path, "message": str(e)})
            return
        payload = [item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in items]
        await connection.send({"type": "file-list", "path": path, "items": payload})
