"""
Object store port.

Used for proof-of-payment and avatar uploads. `put` returns a public
reference to the stored object.
"""

from __future__ import annotations

from typing import Protocol


class ObjectStoreError(Exception):
    """Raised by object store adapters when a put fails."""


class ObjectStorePort(Protocol):
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """
        Store bytes under `key`.

        Returns:
            Public reference (URL or path) to the stored object

        Raises:
            ObjectStoreError: if the object could not be stored
        """
        ...
