"""JSON file persistence for small record collections (users, shares)."""

import asyncio
import os
import tempfile
from pathlib import Path

from pydantic import TypeAdapter

from cvfs.core.models import Model


class JsonCollection[T: Model]:
    """A list of records stored as a single JSON document.

    The whole document is rewritten on every save through a temporary file
    and os.replace, so a crash never leaves a truncated file behind.
    """

    def __init__(self, path: Path, model: type[T]) -> None:
        self.path = path
        self._adapter = TypeAdapter(list[model])  # type: ignore[valid-type]

    async def load(self) -> list[T]:
        """Read all records. A missing file is an empty collection."""
        return await asyncio.to_thread(self._load)

    async def save(self, records: list[T]) -> None:
        """Replace the stored records."""
        await asyncio.to_thread(self._save, records)

    def _load(self) -> list[T]:
        if not self.path.exists():
            return []
        return self._adapter.validate_json(self.path.read_bytes())

    def _save(self, records: list[T]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = self._adapter.dump_json(records, indent=2)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
