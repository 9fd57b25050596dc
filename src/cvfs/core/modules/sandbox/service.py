import asyncio
from pathlib import Path
from uuid import UUID

import structlog

from cvfs.core.core import Service
from cvfs.core.modules.sandbox.paths import normalize_virtual_path, resolve_in_root

logger = structlog.get_logger(__name__)


class SandboxService(Service):
    """Confines every user's virtual paths to that user's root directory.

    This is the only place where virtual paths become physical ones; other
    services must not build physical paths themselves.
    """

    @property
    def vfs_root(self) -> Path:
        return Path(self.core.config.vfs_root_path).absolute()

    async def on_start(self) -> None:
        self.vfs_root.mkdir(parents=True, exist_ok=True)
        logger.debug("sandbox_service_started", vfs_root=str(self.vfs_root))

    def user_root(self, user_id: UUID) -> Path:
        """Physical root directory of a user's sandbox."""
        return self.vfs_root / str(user_id)

    def resolve(self, user_id: UUID, virtual_path: str) -> Path:
        """Resolve a virtual path inside the user's sandbox.

        Raises:
            SecurityError: If the path escapes the user's root
        """
        return resolve_in_root(self.user_root(user_id), virtual_path)

    def normalize(self, virtual_path: str) -> str:
        """Canonical virtual path; raises SecurityError on escape attempts."""
        return normalize_virtual_path(virtual_path)

    async def provision_root(self, user_id: UUID) -> Path:
        """Create the user's root directory if it does not exist yet."""
        root = self.user_root(user_id)
        await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)
        logger.debug("sandbox_root_provisioned", user_id=user_id, root=str(root))
        return root
