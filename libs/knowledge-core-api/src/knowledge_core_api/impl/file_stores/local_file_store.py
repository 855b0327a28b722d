"""File store backed by the local filesystem."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

from knowledge_core_api.impl.settings.file_store_settings import FileStoreSettings
from knowledge_core_api.ports.file_store import FileStore
from knowledge_core_lib.errors import InvalidInputError

logger = logging.getLogger(__name__)

METADATA_SUFFIX = ".meta.json"


class LocalFileStore(FileStore):
    """Store each key as a file below ``base_path`` with a ``<key>.meta.json`` sidecar."""

    def __init__(self, settings: FileStoreSettings):
        self._base_path = Path(settings.base_path).resolve()

    def _path_for(self, key: str) -> Path:
        if not key or key.endswith(METADATA_SUFFIX):
            raise InvalidInputError(f"Invalid storage key: {key!r}")
        path = (self._base_path / key).resolve()
        if not path.is_relative_to(self._base_path):
            raise InvalidInputError(f"Storage key escapes the store: {key!r}")
        return path

    @staticmethod
    def _metadata_path(path: Path) -> Path:
        return path.with_name(path.name + METADATA_SUFFIX)

    async def save(self, key: str, data: bytes, metadata: Optional[dict[str, Any]] = None) -> str:
        path = self._path_for(key)
        await asyncio.to_thread(self._write, path, data, metadata or {})
        logger.debug("Stored %d bytes under %s", len(data), key)
        return key

    def _write(self, path: Path, data: bytes, metadata: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        self._metadata_path(path).write_text(json.dumps(metadata, default=str), encoding="utf-8")

    async def get(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        if not await asyncio.to_thread(path.is_file):
            return None
        return await asyncio.to_thread(path.read_bytes)

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        await asyncio.to_thread(path.unlink, True)
        await asyncio.to_thread(self._metadata_path(path).unlink, True)

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self._path_for(key).is_file)

    async def list(self, prefix: str = "") -> list[str]:
        return await asyncio.to_thread(self._list, prefix)

    def _list(self, prefix: str) -> list[str]:
        if not self._base_path.exists():
            return []
        keys = [
            path.relative_to(self._base_path).as_posix()
            for path in self._base_path.rglob("*")
            if path.is_file() and not path.name.endswith(METADATA_SUFFIX)
        ]
        return sorted(key for key in keys if key.startswith(prefix))

    async def get_metadata(self, key: str) -> Optional[dict[str, Any]]:
        metadata_path = self._metadata_path(self._path_for(key))
        if not await asyncio.to_thread(metadata_path.is_file):
            return None
        raw = await asyncio.to_thread(metadata_path.read_text, "utf-8")
        return json.loads(raw)
