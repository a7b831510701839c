"""Local durable key-value stores used by the draft manager."""

from pathlib import Path
from typing import Protocol
from urllib.parse import quote

import aiofiles
import aiofiles.os

from quizform.config import settings


class KeyValueStore(Protocol):
    """String key-value storage that survives a page reload."""

    async def get(self, key: str) -> str | None:
        """Return the stored value or None."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...

    async def remove(self, key: str) -> None:
        """Delete a key; a missing key is not an error."""
        ...


class InMemoryStore:
    """Process-local store, used in tests and for throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)


class DirectoryStore:
    """One file per key inside a directory."""

    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = Path(directory or settings.draft_storage_dir)

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    async def get(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            async with aiofiles.open(path, encoding="utf-8") as in_file:
                return await in_file.read()
        except FileNotFoundError:
            return None

    async def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        tmp_path = path.with_suffix(".tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as out_file:
            await out_file.write(value)
        # Readers never see a half-written value
        await aiofiles.os.replace(tmp_path, path)

    async def remove(self, key: str) -> None:
        try:
            await aiofiles.os.remove(self._path_for(key))
        except FileNotFoundError:
            pass
