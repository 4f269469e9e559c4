import json
from pathlib import Path

from ddpack_core.errors import ERRORS, FormatError
from ddpack_core.ids import is_unrecorded
from .reader import read_archive

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}


def canonical_json(obj) -> str:
    return json.dumps(obj, **CANONICAL_JSON_KW)


def _fail(errors: list) -> dict:
    return {"status": "FAIL", "error_count": len(errors), "errors": errors}


def verify_pack(pack_path: Path) -> dict:
    """Structural and checksum verification of one pack.

    Header and file-table problems stop verification immediately; content
    problems are collected for every entry.
    """
    pack_path = Path(pack_path)
    if not pack_path.is_file():
        return _fail([{"code": "E_IO", "message": ERRORS["E_IO"], "path": str(pack_path)}])

    try:
        archive = read_archive(pack_path)
    except FormatError as e:
        return _fail([e.to_dict()])

    errors = [e.to_dict() for e in archive.verify_all()]

    seen: set[str] = set()
    for entry in archive:
        if entry.path in seen:
            errors.append({"code": "E_DUPLICATE_PATH", "message": ERRORS["E_DUPLICATE_PATH"], "path": entry.path})
        seen.add(entry.path)

    result = _fail(errors) if errors else {"status": "PASS", "error_count": 0, "errors": []}
    result["version"] = str(archive.header)
    result["entries"] = len(archive)
    result["unrecorded"] = sum(1 for e in archive if is_unrecorded(e.checksum))
    return result
