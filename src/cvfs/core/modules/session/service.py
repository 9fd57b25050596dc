import asyncio
import secrets
from contextlib import suppress
from datetime import timedelta
from uuid import UUID

import structlog

from cvfs.core.core import Service
from cvfs.core.modules.session.models import AuthToken, Session
from cvfs.errors import SessionExpiredError
from cvfs.utils import now

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """In-memory session store with a sliding expiry window and a periodic sweep."""

    def __init__(self) -> None:
        super().__init__()
        self._sessions: dict[AuthToken, Session] = {}
        self._lock = asyncio.Lock()
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self.core.config.session_ttl_seconds)

    async def on_start(self) -> None:
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def on_stop(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None
        self._sessions.clear()

    async def create_session(self, user_id: UUID) -> Session:
        """Mint a new token for the user."""
        async with self._lock:
            session = self._new_session(user_id)
        logger.debug("session_created", user_id=user_id)
        return session

    async def authenticate(self, auth_token: AuthToken) -> UUID:
        """Return the session's user id and slide its expiry forward.

        Raises:
            SessionExpiredError: If the token is unknown or the session has expired
        """
        async with self._lock:
            session = self._get_live_session(auth_token)
            current = now()
            session.last_activity = current
            session.expires_at = current + self.ttl
            return session.user_id

    async def refresh(self, auth_token: AuthToken) -> Session:
        """Replace a live session with a new token; the old token stops working.

        Raises:
            SessionExpiredError: If the token is unknown or was idle longer than the TTL
        """
        async with self._lock:
            session = self._get_live_session(auth_token)
            if now() - session.last_activity > self.ttl:
                del self._sessions[auth_token]
                raise SessionExpiredError
            del self._sessions[auth_token]
            new_session = self._new_session(session.user_id)
        logger.debug("session_refreshed", user_id=session.user_id)
        return new_session

    async def invalidate_session(self, auth_token: AuthToken) -> None:
        """Remove a session. Unknown tokens are ignored."""
        async with self._lock:
            session = self._sessions.pop(auth_token, None)
        if session is not None:
            logger.debug("session_invalidated", user_id=session.user_id)

    def is_active(self, auth_token: AuthToken) -> bool:
        """Check a token without extending its session."""
        session = self._sessions.get(auth_token)
        return session is not None and not session.is_expired(now())

    async def sweep(self) -> int:
        """Delete every expired session and return how many were removed."""
        async with self._lock:
            current = now()
            expired = [token for token, session in self._sessions.items() if session.is_expired(current)]
            for token in expired:
                del self._sessions[token]
        if expired:
            logger.debug("sessions_swept", count=len(expired))
        return len(expired)

    def count(self) -> int:
        return len(self._sessions)

    def _new_session(self, user_id: UUID) -> Session:
        current = now()
        token = AuthToken(secrets.token_urlsafe(32))
        session = Session(token=token, user_id=user_id, last_activity=current, expires_at=current + self.ttl)
        self._sessions[token] = session
        return session

    def _get_live_session(self, auth_token: AuthToken) -> Session:
        session = self._sessions.get(auth_token)
        if session is None:
            raise SessionExpiredError
        if session.is_expired(now()):
            del self._sessions[auth_token]
            raise SessionExpiredError
        return session

    async def _sweep_loop(self) -> None:
        interval = self.core.config.session_sweep_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sweep()
            except Exception:
                logger.exception("session_sweep_failed")
