from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from cvfs.config import Config
from cvfs.core.core import Core
from cvfs.core.modules.broadcast.models import Connection, MessageSender
from cvfs.core.modules.session.models import AuthToken, Session
from cvfs.core.modules.share.models import ShareView
from cvfs.core.modules.user.models import User, UserView
from cvfs.core.modules.vfs.models import FileDownload, ItemMetadata, ItemType, VfsItem
from cvfs.errors import AuthenticationError


class App:
    """Facade for all application operations, authenticates every call before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @property
    def config(self) -> Config:
        return self._core.config

    @asynccontextmanager
    async def lifespan(self) -> AsyncIterator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Authentication ===
    async def signup(self, username: str, password: str) -> UserView:
        """Register a user and provision their root folder."""
        user = await self._core.services.user.create_user(username, password)
        return UserView.from_domain(user)

    async def login(self, username: str, password: str) -> Session:
        """Authenticate user and create session."""
        user = await self._core.services.user.verify_password(username, password)
        if user is None:
            raise AuthenticationError("Invalid username or password")
        return await self._core.services.session.create_session(user.id)

    async def logout(self, auth_token: AuthToken) -> None:
        """Invalidate a session; unknown or expired tokens are ignored."""
        await self._core.services.session.invalidate_session(auth_token)

    async def refresh_session(self, auth_token: AuthToken) -> Session:
        """Exchange a live token for a new one."""
        return await self._core.services.session.refresh(auth_token)

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        """Check if authentication token is valid without extending it."""
        return self._core.services.session.is_active(auth_token)

    def session_ttl_seconds(self) -> int:
        return self._core.config.session_ttl_seconds

    # === Users ===
    async def get_current_user(self, auth_token: AuthToken) -> UserView:
        current_user = await self._authenticate(auth_token)
        return UserView.from_domain(current_user)

    async def get_all_users(self, auth_token: AuthToken) -> list[UserView]:
        """List all users (for choosing a share target)."""
        await self._authenticate(auth_token)
        return [UserView.from_domain(user) for user in self._core.services.user.get_all_users()]

    # === Virtual filesystem ===
    async def list_items(self, auth_token: AuthToken, path: str) -> list[VfsItem]:
        current_user = await self._authenticate(auth_token)
        return await self._core.services.vfs.list_items(current_user.id, path)

    async def create_item(self, auth_token: AuthToken, parent_path: str, name: str, item_type: ItemType) -> str:
        current_user = await self._authenticate(auth_token)
        return await self._core.services.vfs.create_item(current_user.id, parent_path, name, item_type)

    async def read_file(self, auth_token: AuthToken, path: str) -> str:
        current_user = await self._authenticate(auth_token)
        return await self._core.services.vfs.read_file(current_user.id, path)

    async def write_file(self, auth_token: AuthToken, path: str, content: str) -> None:
        current_user = await self._authenticate(auth_token)
        await self._core.services.vfs.write_file(current_user.id, path, content)

    async def get_file_download(self, auth_token: AuthToken, path: str) -> FileDownload:
        current_user = await self._authenticate(auth_token)
        return await self._core.services.vfs.get_file_download(current_user.id, path)

    async def delete_item(self, auth_token: AuthToken, path: str, recursive: bool = False) -> None:
        current_user = await self._authenticate(auth_token)
        if recursive:
            await self._core.services.vfs.delete_item_recursive(current_user.id, path)
        else:
            await self._core.services.vfs.delete_item(current_user.id, path)

    async def move_item(self, auth_token: AuthToken, source_path: str, destination_path: str) -> None:
        current_user = await self._authenticate(auth_token)
        await self._core.services.vfs.move_item(current_user.id, source_path, destination_path)

    async def copy_item(self, auth_token: AuthToken, source_path: str, destination_path: str) -> None:
        current_user = await self._authenticate(auth_token)
        await self._core.services.vfs.copy_item(current_user.id, source_path, destination_path)

    async def get_metadata(self, auth_token: AuthToken, path: str) -> ItemMetadata:
        current_user = await self._authenticate(auth_token)
        return await self._core.services.vfs.get_metadata(current_user.id, path)

    async def upload_file(self, auth_token: AuthToken, folder_path: str, file_name: str, content: bytes) -> str:
        current_user = await self._authenticate(auth_token)
        return await self._core.services.vfs.upload_file(current_user.id, folder_path, file_name, content)

    # === Sharing ===
    async def share_item(self, auth_token: AuthToken, path: str, target_user_id: UUID) -> None:
        current_user = await self._authenticate(auth_token)
        await self._core.services.share.share_item(current_user.id, path, target_user_id)

    async def get_pending_shares(self, auth_token: AuthToken) -> list[ShareView]:
        current_user = await self._authenticate(auth_token)
        return self._core.services.share.list_pending(current_user.id)

    async def accept_share(self, auth_token: AuthToken, name: str) -> None:
        current_user = await self._authenticate(auth_token)
        await self._core.services.share.accept_share(current_user.id, name)

    async def deny_share(self, auth_token: AuthToken, name: str) -> None:
        current_user = await self._authenticate(auth_token)
        await self._core.services.share.deny_share(current_user.id, name)

    # === Live updates ===
    async def connect(self, auth_token: AuthToken, send: MessageSender) -> Connection:
        """Register a live connection for the token's user."""
        current_user = await self._authenticate(auth_token)
        return self._core.services.broadcast.register(current_user.id, auth_token, send)

    async def disconnect(self, connection: Connection) -> None:
        await self._core.services.broadcast.unregister(connection)

    async def subscribe(self, connection: Connection, path: str) -> str:
        """Watch a folder on a live connection (re-validates the session)."""
        await self._authenticate(connection.auth_token)
        return self._core.services.broadcast.subscribe(connection, path)

    async def unsubscribe(self, connection: Connection) -> None:
        await self._authenticate(connection.auth_token)
        self._core.services.broadcast.unsubscribe(connection)

    # === Private helpers ===
    async def _authenticate(self, auth_token: AuthToken) -> User:
        return await self._core.services.access.ensure_authenticated(auth_token)
