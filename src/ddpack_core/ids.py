"""Content digests and object identifiers for asset packs."""
from __future__ import annotations

import hashlib

from .protocol import CHECKSUM_LEN, PACKS_PREFIX, RESOURCE_PREFIX

NO_CHECKSUM = bytes(CHECKSUM_LEN)


def content_checksum(data: bytes | memoryview) -> bytes:
    """MD5 digest stored in the file table for each entry."""
    return hashlib.md5(data).digest()


def is_unrecorded(checksum: bytes) -> bool:
    """Dungeondraft leaves the checksum zeroed; treat that as absent."""
    return checksum == NO_CHECKSUM


def split_pack_path(path: str) -> tuple[str, str]:
    """Split `res://packs/<id>/<rel>` into `(id, rel)`.

    Paths without a pack directory (the root `res://packs/<id>.json`) come back
    as `("", "<id>.json")`. Paths outside `res://packs/` keep their resource
    path relative to `res://`.
    """
    if path.startswith(PACKS_PREFIX):
        rest = path[len(PACKS_PREFIX):]
        pack_id, sep, rel = rest.partition("/")
        if not sep:
            return "", rest
        return pack_id, rel
    if path.startswith(RESOURCE_PREFIX):
        return "", path[len(RESOURCE_PREFIX):]
    return "", path


def object_id(path: str) -> str:
    """Identifier used by tag files to reference an object entry."""
    return split_pack_path(path)[1]


def pack_path(pack_id: str, rel: str) -> str:
    """Inverse of `split_pack_path` for files inside a pack directory."""
    return f"{PACKS_PREFIX}{pack_id}/{rel}"
