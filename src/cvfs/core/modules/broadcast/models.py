import asyncio
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import UUID, uuid4

from cvfs.core.modules.session.models import AuthToken

type MessageSender = Callable[[dict[str, Any]], Awaitable[None]]


class Connection:
    """A live client connection and its subscription state.

    The connection's ticker task is the only sender of messages, so
    mutation handlers never write to the socket directly; they queue the
    changed paths and set the wake event.
    """

    def __init__(self, user_id: UUID, auth_token: AuthToken, send: MessageSender) -> None:
        self.id = uuid4()
        self.user_id = user_id
        self.auth_token = auth_token
        self.send = send
        self.watched_path: str | None = None
        self.changed_paths: list[str] = []
        self.wake = asyncio.Event()
        self.task: asyncio.Task[None] | None = None

    def signal(self, paths: tuple[str, ...] | list[str] = ()) -> None:
        for path in paths:
            if path not in self.changed_paths:
                self.changed_paths.append(path)
        self.wake.set()

    def drain_changes(self) -> list[str]:
        changes, self.changed_paths = self.changed_paths, []
        return changes
