"""Virtual path classification inside an asset pack."""
from __future__ import annotations

from .ids import split_pack_path
from .protocol import OBJECTS_DIR, PACKS_PREFIX, TAGS_FILE_NAME


def is_root_json_file(path: str) -> bool:
    """True for `res://packs/<id>.json`, the pack metadata at the packs root."""
    pack_id, rel = split_pack_path(path)
    return path.startswith(PACKS_PREFIX) and not pack_id and rel.endswith(".json") and "/" not in rel


def is_tags_file(path: str) -> bool:
    pack_id, rel = split_pack_path(path)
    return bool(pack_id) and rel == TAGS_FILE_NAME


def is_object_file(path: str) -> bool:
    pack_id, rel = split_pack_path(path)
    return bool(pack_id) and rel.startswith(OBJECTS_DIR) and len(rel) > len(OBJECTS_DIR)
