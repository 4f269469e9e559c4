"""Pack metadata (`res://packs/<id>.json`)."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ddpack_archive.reader import Archive
from ddpack_core.errors import ParseFailure
from ddpack_core.paths import is_root_json_file

META_KEYS = ("name", "id", "version", "author")


@dataclass(frozen=True)
class PackMeta:
    name: str
    id: str
    version: str
    author: str
    custom_color_overrides: dict[str, Any] | None = field(default=None, compare=False)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "PackMeta":
        missing = [k for k in META_KEYS if k not in d]
        if missing:
            raise ParseFailure(f"pack metadata is missing {', '.join(missing)}")
        overrides = d.get("custom_color_overrides")
        return PackMeta(
            name=str(d["name"]),
            id=str(d["id"]),
            version=str(d["version"]),
            author=str(d["author"]),
            custom_color_overrides=dict(overrides) if isinstance(overrides, dict) else None,
        )


def read_pack_meta(archive: Archive) -> PackMeta | None:
    """Metadata of the pack, or None when the pack has no root json file."""
    entry = next((e for e in archive if is_root_json_file(e.path)), None)
    if entry is None:
        return None
    try:
        obj = json.loads(bytes(archive.extract(entry)).decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
        raise ParseFailure(f"{entry.path}: {e}") from e
    if not isinstance(obj, dict):
        raise ParseFailure(f"{entry.path}: top level must be an object")
    return PackMeta.from_dict(obj)
