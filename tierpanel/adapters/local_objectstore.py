"""
Local filesystem object store.

Implements ObjectStorePort for development and single-server deployments.
Objects are immutable: a key, once written, cannot be overwritten.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from pathlib import Path

from tierpanel.ports.objectstore import ObjectStoreError

logger = logging.getLogger(__name__)


class LocalObjectStore:
    """
    Stores `{base_path}/{key}` plus a `.meta.json` sidecar.

    `put` returns `{public_base_url}/{key}`.
    """

    def __init__(
        self,
        base_path: str | Path,
        public_base_url: str = "/objects",
        *,
        create_dirs: bool = True,
    ) -> None:
        self.base_path = Path(base_path)
        self.public_base_url = public_base_url.rstrip("/")

        if create_dirs:
            self.base_path.mkdir(parents=True, exist_ok=True)

    def _key_to_paths(self, key: str) -> tuple[Path, Path]:
        # Sanitize key to prevent directory traversal
        safe_key = key.replace("..", "").lstrip("/")
        data_path = self.base_path / safe_key
        meta_path = self.base_path / f"{safe_key}.meta.json"
        return data_path, meta_path

    def _write(self, key: str, data: bytes, content_type: str) -> None:
        data_path, meta_path = self._key_to_paths(key)
        data_path.parent.mkdir(parents=True, exist_ok=True)
        # Exclusive create: a concurrent writer of the same key loses
        try:
            f = open(data_path, "xb")
        except FileExistsError:
            raise ObjectStoreError(f"Key already exists: {key}") from None
        with f:
            f.write(data)
        with open(meta_path, "w", encoding="utf-8") as f:
            json.dump(
                {
                    "key": key,
                    "size_bytes": len(data),
                    "content_type": content_type,
                    "sha256": hashlib.sha256(data).hexdigest(),
                },
                f,
            )

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(self._write, key, data, content_type)
        except OSError as exc:
            raise ObjectStoreError(f"Could not write {key}: {exc}") from exc
        logger.debug("Stored object %s (%d bytes)", key, len(data))
        return f"{self.public_base_url}/{key}"

    def exists(self, key: str) -> bool:
        data_path, _ = self._key_to_paths(key)
        return data_path.exists()

    def read(self, key: str) -> bytes:
        data_path, _ = self._key_to_paths(key)
        if not data_path.exists():
            raise ObjectStoreError(f"Key not found: {key}")
        return data_path.read_bytes()
