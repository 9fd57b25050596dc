"""Tests for the in-memory session store."""

import asyncio

import pytest

from cvfs.core.core import Core
from cvfs.core.modules.session.models import AuthToken
from cvfs.errors import SessionExpiredError

TTL = 300


class TestAuthenticate:
    """Tests for authenticate and the sliding expiry window."""

    async def test_valid_token_returns_user(self, core, alice, clock):
        session = await core.services.session.create_session(alice.id)
        assert await core.services.session.authenticate(session.token) == alice.id

    async def test_unknown_token_rejected(self, core, clock):
        with pytest.raises(SessionExpiredError):
            await core.services.session.authenticate(AuthToken("no-such-token"))

    async def test_token_untouched_longer_than_ttl_rejected(self, core, alice, clock):
        session = await core.services.session.create_session(alice.id)
        clock.advance(TTL + 1)
        with pytest.raises(SessionExpiredError):
            await core.services.session.authenticate(session.token)
        # Expired sessions are removed when seen
        assert core.services.session.count() == 0

    async def test_activity_slides_expiry(self, core, alice, clock):
        session = await core.services.session.create_session(alice.id)
        for _ in range(5):
            clock.advance(TTL - 1)
            assert await core.services.session.authenticate(session.token) == alice.id

    async def test_is_active_does_not_slide(self, core, alice, clock):
        session = await core.services.session.create_session(alice.id)
        clock.advance(TTL - 1)
        assert core.services.session.is_active(session.token)
        clock.advance(2)
        assert not core.services.session.is_active(session.token)

    async def test_tokens_are_unique(self, core, alice, clock):
        first = await core.services.session.create_session(alice.id)
        second = await core.services.session.create_session(alice.id)
        assert first.token != second.token
        assert len(first.token) >= 32


class TestRefresh:
    """Tests for token rotation."""

    async def test_refresh_rotates_token(self, core, alice, clock):
        session = await core.services.session.create_session(alice.id)
        new_session = await core.services.session.refresh(session.token)

        assert new_session.token != session.token
        assert new_session.user_id == alice.id
        assert await core.services.session.authenticate(new_session.token) == alice.id
        with pytest.raises(SessionExpiredError):
            await core.services.session.authenticate(session.token)

    async def test_refresh_within_ttl_keeps_user_signed_in(self, core, alice, clock):
        session = await core.services.session.create_session(alice.id)
        clock.advance(TTL - 10)
        new_session = await core.services.session.refresh(session.token)
        clock.advance(TTL - 10)
        assert await core.services.session.authenticate(new_session.token) == alice.id

    async def test_refresh_after_inactivity_rejected(self, core, alice, clock):
        session = await core.services.session.create_session(alice.id)
        clock.advance(TTL + 1)
        with pytest.raises(SessionExpiredError):
            await core.services.session.refresh(session.token)

    async def test_old_token_cannot_be_refreshed_twice(self, core, alice, clock):
        session = await core.services.session.create_session(alice.id)
        await core.services.session.refresh(session.token)
        with pytest.raises(SessionExpiredError):
            await core.services.session.refresh(session.token)


class TestInvalidateAndSweep:
    """Tests for logout and the expiry sweep."""

    async def test_invalidate_is_idempotent(self, core, alice, clock):
        session = await core.services.session.create_session(alice.id)
        await core.services.session.invalidate_session(session.token)
        await core.services.session.invalidate_session(session.token)
        await core.services.session.invalidate_session(AuthToken("never-existed"))
        with pytest.raises(SessionExpiredError):
            await core.services.session.authenticate(session.token)

    async def test_sweep_removes_only_expired(self, core, alice, bob, clock):
        stale = await core.services.session.create_session(alice.id)
        clock.advance(TTL - 100)
        fresh = await core.services.session.create_session(bob.id)
        clock.advance(101)

        assert await core.services.session.sweep() == 1
        assert not core.services.session.is_active(stale.token)
        assert core.services.session.is_active(fresh.token)

    async def test_background_sweep_runs_on_interval(self, config_factory, clock):
        config = config_factory(session_sweep_interval_seconds=0.01)
        core = Core(config)
        async with core.lifespan():
            user = await core.services.user.create_user("carol", "carol-pass")
            await core.services.session.create_session(user.id)
            clock.advance(TTL + 1)
            for _ in range(100):
                if core.services.session.count() == 0:
                    break
                await asyncio.sleep(0.01)
            assert core.services.session.count() == 0

    async def test_sweep_task_cancelled_on_stop(self, config):
        core = Core(config)
        async with core.lifespan():
            task = core.services.session._sweep_task
            assert task is not None
            assert not task.done()
        assert task.done()
