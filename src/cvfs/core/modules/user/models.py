from datetime import datetime
from uuid import UUID

from pydantic import Field

from cvfs.core.models import ApiModel, Model
from cvfs.utils import now


class User(Model):
    """User domain model with credentials."""

    username: str
    password_hash: str  # bcrypt hash
    created_at: datetime = Field(default_factory=now)


class UserView(ApiModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, username=user.username)
