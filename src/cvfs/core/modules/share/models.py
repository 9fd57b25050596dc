from datetime import datetime
from uuid import UUID

from pydantic import Field

from cvfs.core.models import ApiModel, Model
from cvfs.utils import now


class ShareRecord(Model):
    """A proposal to copy a path from one user's sandbox into another's.

    Pending while neither accepted nor denied; each terminal state is reached at most once.
    """

    source_user_id: UUID
    target_user_id: UUID
    path: str  # Virtual path in the source user's sandbox
    name: str  # Display name, the last segment of path
    accepted: bool = False
    denied: bool = False
    created_at: datetime = Field(default_factory=now)
    resolved_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return not self.accepted and not self.denied


class ShareView(ApiModel):
    """Pending share as shown to its target user."""

    id: UUID = Field(..., description="Share ID")
    name: str = Field(..., description="Name the item will get in the root folder when accepted")
    path: str = Field(..., description="Path of the item in the sharing user's sandbox")
    source_user_id: UUID = Field(..., description="ID of the sharing user")
    source_username: str = Field(..., description="Username of the sharing user")
    created_at: datetime = Field(..., description="When the item was shared")
