"""Shared pytest fixtures."""

from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from cvfs.config import Config
from cvfs.core.core import Core
from cvfs.core.modules.user.models import User


class FakeClock:
    """Controllable replacement for cvfs.utils.now."""

    def __init__(self) -> None:
        self.current = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


def make_config(tmp_path: Path, **overrides: object) -> Config:
    settings: dict[str, object] = {
        "data_path": str(tmp_path / "data"),
        "vfs_root_path": str(tmp_path / "vfs"),
        "bcrypt_rounds": 4,
        "session_ttl_seconds": 300,
        "session_sweep_interval_seconds": 3600,
        "broadcast_interval_seconds": 0.05,
    }
    settings.update(overrides)
    return Config(_env_file=None, **settings)  # type: ignore[arg-type]


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return make_config(tmp_path)


@pytest.fixture
def config_factory(tmp_path: Path) -> Callable[..., Config]:
    """Build a config for tmp_path with some settings overridden."""
    return lambda **overrides: make_config(tmp_path, **overrides)


@pytest.fixture
async def core(config: Config) -> AsyncIterator[Core]:
    core = Core(config)
    async with core.lifespan():
        yield core


@pytest.fixture
async def alice(core: Core) -> User:
    return await core.services.user.create_user("alice", "alice-pass")


@pytest.fixture
async def bob(core: Core) -> User:
    return await core.services.user.create_user("bob", "bob-pass")


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr("cvfs.core.modules.session.service.now", fake)
    return fake
