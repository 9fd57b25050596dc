import asyncio
from uuid import UUID

import bcrypt
import structlog

from cvfs.core.core import Service
from cvfs.core.modules.user.models import User
from cvfs.core.modules.user.validators import MAX_PASSWORD_BYTES, validate_password, validate_username
from cvfs.core.store import JsonCollection
from cvfs.errors import AlreadyExistsError, NotFoundError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages users with an in-memory cache backed by users.json."""

    def __init__(self) -> None:
        super().__init__()
        self._users: dict[UUID, User] = {}
        self._lock = asyncio.Lock()
        self._dummy_hash: bytes | None = None

    @property
    def _collection(self) -> JsonCollection[User]:
        return JsonCollection(self.core.data_path / "users.json", User)

    def get_user(self, user_id: UUID) -> User:
        """Get user by ID from cache."""
        if user_id not in self._users:
            raise NotFoundError(f"User '{user_id}' not found")
        return self._users[user_id]

    def get_user_by_username(self, username: str) -> User:
        """Get user by username from cache."""
        user = next((u for u in self._users.values() if u.username == username), None)
        if user is None:
            raise NotFoundError(f"User '{username}' not found")
        return user

    def has_user(self, user_id: UUID) -> bool:
        """Check if user exists by ID."""
        return user_id in self._users

    def has_username(self, username: str) -> bool:
        """Check if username exists."""
        return any(user.username == username for user in self._users.values())

    def get_all_users(self) -> list[User]:
        """Get all users sorted by username."""
        return sorted(self._users.values(), key=lambda u: u.username)

    async def create_user(self, username: str, password: str) -> User:
        """Create user with hashed password and provision their sandbox root."""
        validate_username(username)
        validate_password(password)
        password_hash = await asyncio.to_thread(self._hash_password, password)

        async with self._lock:
            if self.has_username(username):
                raise AlreadyExistsError(f"Username '{username}' is already taken")
            user = User(username=username, password_hash=password_hash)
            self._users[user.id] = user
            await self._collection.save(list(self._users.values()))

        await self.core.services.sandbox.provision_root(user.id)
        logger.info("user_created", user_id=user.id, username=username)
        return user

    async def verify_password(self, username: str, password: str) -> User | None:
        """Return the user if the password matches, otherwise None.

        An unknown username is checked against a dummy hash so both failure
        paths cost one bcrypt comparison. Passwords longer than bcrypt accepts
        can never have been stored, so they are checked truncated and rejected.
        """
        user = next((u for u in self._users.values() if u.username == username), None)
        stored_hash = user.password_hash.encode("utf-8") if user is not None else self._get_dummy_hash()
        candidate = password.encode("utf-8")
        too_long = len(candidate) > MAX_PASSWORD_BYTES
        matches = await asyncio.to_thread(bcrypt.checkpw, candidate[:MAX_PASSWORD_BYTES], stored_hash)
        if user is None or too_long or not matches:
            return None
        return user

    def _hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.core.config.bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def _get_dummy_hash(self) -> bytes:
        if self._dummy_hash is None:
            self._dummy_hash = self._hash_password("dummy-password").encode("utf-8")
        return self._dummy_hash

    async def update_all_users_cache(self) -> None:
        """Reload all users from users.json."""
        users = await self._collection.load()
        self._users = {user.id: user for user in users}

    async def on_start(self) -> None:
        """Load users and make sure each one has a sandbox root."""
        await self.update_all_users_cache()
        for user_id in self._users:
            await self.core.services.sandbox.provision_root(user_id)
        logger.debug("user_service_started", user_count=len(self._users))
