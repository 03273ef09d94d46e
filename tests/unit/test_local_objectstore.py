import json

import pytest

from tierpanel.adapters.local_objectstore import LocalObjectStore
from tierpanel.ports.objectstore import ObjectStoreError


@pytest.fixture
def store(tmp_path):
    return LocalObjectStore(tmp_path / "objects")


@pytest.mark.asyncio
async def test_put_returns_public_reference(store):
    ref = await store.put("payments/abc-1.png", b"png-bytes", "image/png")

    assert ref == "/objects/payments/abc-1.png"
    assert store.exists("payments/abc-1.png")
    assert store.read("payments/abc-1.png") == b"png-bytes"


@pytest.mark.asyncio
async def test_put_writes_metadata(store, tmp_path):
    await store.put("avatars/a.png", b"1234", "image/png")

    meta = json.loads((tmp_path / "objects" / "avatars" / "a.png.meta.json").read_text())
    assert meta["size_bytes"] == 4
    assert meta["content_type"] == "image/png"
    assert len(meta["sha256"]) == 64


@pytest.mark.asyncio
async def test_keys_are_immutable(store):
    await store.put("payments/k.png", b"first", "image/png")

    with pytest.raises(ObjectStoreError):
        await store.put("payments/k.png", b"second", "image/png")
    assert store.read("payments/k.png") == b"first"


@pytest.mark.asyncio
async def test_traversal_is_neutralized(store, tmp_path):
    await store.put("../../escape.png", b"x", "image/png")

    assert not (tmp_path / "escape.png").exists()
    assert store.exists("escape.png")


def test_read_missing(store):
    with pytest.raises(ObjectStoreError):
        store.read("nope.png")


@pytest.mark.asyncio
async def test_existing_file_without_metadata_is_not_overwritten(store, tmp_path):
    # A writer that has created the data file but not yet its sidecar
    target = tmp_path / "objects" / "payments" / "race.png"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"winner")

    with pytest.raises(ObjectStoreError):
        await store.put("payments/race.png", b"loser", "image/png")
    assert target.read_bytes() == b"winner"
