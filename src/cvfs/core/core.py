from __future__ import annotations

import importlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, cast

import structlog

from cvfs.config import Config

if TYPE_CHECKING:
    from cvfs.core.modules.access.service import AccessService
    from cvfs.core.modules.broadcast.service import BroadcastService
    from cvfs.core.modules.sandbox.service import SandboxService
    from cvfs.core.modules.session.service import SessionService
    from cvfs.core.modules.share.service import ShareService
    from cvfs.core.modules.user.service import UserService
    from cvfs.core.modules.vfs.service import VfsService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services sharing the core application context."""

    def __init__(self) -> None:
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    sandbox: SandboxService
    user: UserService
    session: SessionService
    access: AccessService
    broadcast: BroadcastService
    vfs: VfsService
    share: ShareService

    def __init__(self) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters: sandbox roots must exist before users are loaded,
        # and the broadcaster must be stopped before anything it reads from
        service_configs = [
            ("sandbox", "cvfs.core.modules.sandbox.service", "SandboxService"),
            ("user", "cvfs.core.modules.user.service", "UserService"),
            ("session", "cvfs.core.modules.session.service", "SessionService"),
            ("access", "cvfs.core.modules.access.service", "AccessService"),
            ("broadcast", "cvfs.core.modules.broadcast.service", "BroadcastService"),
            ("vfs", "cvfs.core.modules.vfs.service", "VfsService"),
            ("share", "cvfs.core.modules.share.service", "ShareService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class()
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services in registration order."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services in reverse registration order."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, storage locations, and all service instances."""

    config: Config
    data_path: Path
    services: Services

    def __init__(self, config: Config) -> None:
        self.config = config
        self.data_path = Path(config.data_path)
        self.services = Services()
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncIterator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Create storage directories and start all services."""
        self.data_path.mkdir(parents=True, exist_ok=True)
        await self.services.start_all()
        logger.info("core_started", data_path=str(self.data_path), vfs_root_path=self.config.vfs_root_path)

    async def on_stop(self) -> None:
        """Stop all services on shutdown."""
        await self.services.stop_all()
        logger.info("core_stopped")
