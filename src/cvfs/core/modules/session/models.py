"""Session management models."""

from dataclasses import dataclass
from datetime import datetime
from typing import NewType
from uuid import UUID

AuthToken = NewType("AuthToken", str)


@dataclass
class Session:
    """In-memory authentication session.

    expires_at is always last_activity plus the configured TTL.
    """

    token: AuthToken
    user_id: UUID
    last_activity: datetime
    expires_at: datetime

    def is_expired(self, at: datetime) -> bool:
        return at >= self.expires_at
