from datetime import datetime
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

from cvfs.core.models import ApiModel


class ItemType(StrEnum):
    FILE = "file"
    FOLDER = "folder"


class VfsItem(ApiModel):
    """Directory listing entry, computed from the filesystem on demand."""

    name: str = Field(..., description="Entry name")
    type: ItemType = Field(..., description="Entry kind")
    size: int | None = Field(None, description="Size in bytes (files only)")


class ItemMetadata(ApiModel):
    """Detailed information about a single entry."""

    name: str = Field(..., description="Entry name ('' for the root folder)")
    path: str = Field(..., description="Canonical virtual path")
    type: ItemType = Field(..., description="Entry kind")
    size: int = Field(..., description="Size in bytes (0 for folders)")
    created_at: datetime = Field(..., description="Creation time (inode change time where birth time is unavailable)")
    modified_at: datetime = Field(..., description="Last modification time")


class FileDownload(BaseModel):
    """A resolved file ready to be streamed to the client."""

    file_path: Path = Field(..., description="Absolute path to file on disk")
    filename: str = Field(..., description="File name")
    media_type: str = Field(..., description="MIME type guessed from the extension")
