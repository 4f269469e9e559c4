"""GDPC container writer."""
from __future__ import annotations

import io
import struct
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterable, Sequence

from ddpack_core.errors import AlreadyExists, DuplicatePath, InvalidPath, IOFailure
from ddpack_core.ids import content_checksum
from ddpack_core.protocol import (
    DEFAULT_VERSION,
    ENTRY_TAIL_FMT,
    ENTRY_TAIL_LEN,
    HEADER_FMT,
    HEADER_LEN,
    MAGIC,
    PATH_LEN_FMT,
    PATH_LEN_LEN,
    RESERVED_FIELDS,
    RESOURCE_PREFIX,
    VERSION_FIELDS,
)

Content = bytes | bytearray | memoryview


def _layout(
    entries: Iterable[tuple[str, Content]],
) -> list[tuple[bytes, int, int, bytes, Content]]:
    """Resolve (path_bytes, offset, size, checksum, content) for every entry.

    Validation happens here, before anything is written.
    """
    items = list(entries)
    seen: set[str] = set()
    encoded: list[bytes] = []
    for path, _ in items:
        if path in seen:
            raise DuplicatePath(path, path=path)
        if not path.startswith(RESOURCE_PREFIX):
            raise InvalidPath(f"{path!r} does not start with {RESOURCE_PREFIX}")
        seen.add(path)
        encoded.append(path.encode("utf-8"))

    # Content region starts right after the file table.
    offset = HEADER_LEN + sum(PATH_LEN_LEN + len(b) + ENTRY_TAIL_LEN for b in encoded)

    out = []
    for path_bytes, (_, content) in zip(encoded, items):
        size = memoryview(content).nbytes
        out.append((path_bytes, offset, size, content_checksum(content), content))
        offset += size
    return out


def _emit(
    f: BinaryIO,
    layout: Sequence[tuple[bytes, int, int, bytes, Content]],
    version: Sequence[int],
    reserved: Sequence[int],
) -> int:
    f.write(struct.pack(HEADER_FMT, MAGIC, *version, *reserved, len(layout)))
    for path_bytes, offset, size, checksum, _ in layout:
        f.write(struct.pack(PATH_LEN_FMT, len(path_bytes)))
        f.write(path_bytes)
        f.write(struct.pack(ENTRY_TAIL_FMT, offset, size, checksum))
    for _, _, _, _, content in layout:
        f.write(content)
    return layout[-1][1] + layout[-1][2] if layout else HEADER_LEN


def _check_header_fields(version: Sequence[int], reserved: Sequence[int] | None) -> tuple[tuple, tuple]:
    version = tuple(int(v) for v in version)
    if len(version) != VERSION_FIELDS:
        raise ValueError(f"version needs {VERSION_FIELDS} fields, got {len(version)}")
    reserved = tuple(int(v) for v in reserved) if reserved is not None else (0,) * RESERVED_FIELDS
    if len(reserved) != RESERVED_FIELDS:
        raise ValueError(f"reserved needs {RESERVED_FIELDS} fields, got {len(reserved)}")
    return version, reserved


def pack_archive(
    entries: Iterable[tuple[str, Content]],
    version: Sequence[int] = DEFAULT_VERSION,
    reserved: Sequence[int] | None = None,
) -> bytes:
    """Serialize (path, content) pairs into GDPC bytes, keeping the given order."""
    version, reserved = _check_header_fields(version, reserved)
    layout = _layout(entries)
    buf = io.BytesIO()
    _emit(buf, layout, version, reserved)
    return buf.getvalue()


def write_archive(
    path: str | Path,
    entries: Iterable[tuple[str, Content]],
    *,
    version: Sequence[int] = DEFAULT_VERSION,
    reserved: Sequence[int] | None = None,
    overwrite: bool = False,
) -> int:
    """Atomic write of a pack to `path`. Returns the archive size in bytes.

    The archive is staged next to the target and moved into place, so either
    the complete file exists afterwards or nothing changed.
    """
    p = Path(path)
    if p.exists() and not overwrite:
        raise AlreadyExists(str(p), path=str(p))

    version, reserved = _check_header_fields(version, reserved)
    layout = _layout(entries)

    tmp: Path | None = None
    try:
        # Staging name is unique per call.
        with tempfile.NamedTemporaryFile(
            "wb", dir=p.parent, prefix=f"{p.name}.", suffix=".tmp", delete=False
        ) as f:
            tmp = Path(f.name)
            size = _emit(f, layout, version, reserved)
        tmp.replace(p)
    except OSError as e:
        if tmp is not None:
            tmp.unlink(missing_ok=True)
        raise IOFailure(f"{p}: {e}", path=str(p)) from e
    return size
