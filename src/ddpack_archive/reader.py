"""GDPC container reader.

The whole file is loaded once; entries are views into that buffer until a
caller asks for an owned copy.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from ddpack_core.errors import (
    BadMagic,
    ChecksumMismatch,
    FormatError,
    InvalidPath,
    ReservedNonZero,
    Truncated,
)
from ddpack_core.ids import content_checksum, is_unrecorded
from ddpack_core.protocol import (
    ENTRY_TAIL_FMT,
    ENTRY_TAIL_LEN,
    HEADER_FMT,
    HEADER_LEN,
    MAGIC,
    PATH_LEN_FMT,
    PATH_LEN_LEN,
    RESERVED_FIELDS,
    RESOURCE_PREFIX,
)


@dataclass(frozen=True)
class ArchiveHeader:
    version: tuple[int, int, int, int]
    reserved: tuple[int, ...] = (0,) * RESERVED_FIELDS
    entry_count: int = 0

    @property
    def engine(self) -> int:
        return self.version[0]

    @property
    def major(self) -> int:
        return self.version[1]

    @property
    def minor(self) -> int:
        return self.version[2]

    @property
    def revision(self) -> int:
        return self.version[3]

    def __str__(self) -> str:
        return ".".join(str(v) for v in self.version)


@dataclass(frozen=True)
class ArchiveEntry:
    path: str
    offset: int
    size: int
    checksum: bytes = field(repr=False)

    @property
    def end(self) -> int:
        return self.offset + self.size


class Archive:
    """Header, ordered file table and the backing bytes of one pack."""

    def __init__(
        self,
        header: ArchiveHeader,
        entries: list[ArchiveEntry],
        source: bytes | memoryview,
        origin: Path | None = None,
    ):
        self.header = header
        self.entries = entries
        self.origin = origin
        self._source = memoryview(source).toreadonly()
        self._by_path = {e.path: e for e in entries}

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return iter(self.entries)

    @property
    def size(self) -> int:
        return len(self._source)

    def paths(self) -> list[str]:
        return [e.path for e in self.entries]

    def get(self, path: str) -> ArchiveEntry | None:
        return self._by_path.get(path)

    def extract(self, entry: ArchiveEntry) -> memoryview:
        """Return the content of `entry` as a view into the source buffer."""
        if entry.offset < 0 or entry.size < 0 or entry.end > len(self._source):
            raise Truncated(
                f"{entry.path} spans [{entry.offset}, {entry.end}) but archive has {len(self._source)} bytes",
                path=entry.path,
            )
        return self._source[entry.offset:entry.end]

    def read_bytes(self, entry: ArchiveEntry) -> bytes:
        return bytes(self.extract(entry))

    def verify(self, entry: ArchiveEntry) -> bool:
        """Check the stored checksum of one entry.

        Returns False when the checksum was never recorded (all zero bytes),
        True when it matches. Raises ChecksumMismatch otherwise.
        """
        data = self.extract(entry)
        if is_unrecorded(entry.checksum):
            return False
        computed = content_checksum(data)
        if computed != entry.checksum:
            raise ChecksumMismatch(
                entry.path,
                path=entry.path,
                expected=entry.checksum.hex(),
                computed=computed.hex(),
            )
        return True

    def verify_all(self) -> list[FormatError]:
        """Verify every entry, collecting failures instead of stopping at the first."""
        problems: list[FormatError] = []
        for entry in self.entries:
            try:
                self.verify(entry)
            except (ChecksumMismatch, Truncated) as e:
                problems.append(e)
        return problems


def _unpack(fmt: str, size: int, view: memoryview, off: int, what: str) -> tuple:
    if off + size > len(view):
        raise Truncated(f"need {size} bytes for {what} at offset {off}, have {len(view) - off}")
    return struct.unpack_from(fmt, view, off)


def parse_header(view: memoryview) -> ArchiveHeader:
    if len(view) < len(MAGIC) or bytes(view[:len(MAGIC)]) != MAGIC:
        raise BadMagic(f"found {bytes(view[:len(MAGIC)])!r}")
    fields = _unpack(HEADER_FMT, HEADER_LEN, view, 0, "header")
    version = tuple(fields[1:5])
    reserved = tuple(fields[5:21])
    count = fields[21]

    if any(reserved):
        raise ReservedNonZero(f"reserved={list(reserved)}")
    if count < 0:
        raise Truncated(f"negative entry count {count}")
    return ArchiveHeader(version=version, reserved=reserved, entry_count=count)


def _decode_path(raw: bytes, index: int) -> str:
    try:
        path = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidPath(f"entry {index} path is not UTF-8 ({e.reason})") from e

    # Godot pads paths to a multiple of 4 bytes with NULs.
    path = path.rstrip("\x00")
    if not path.startswith(RESOURCE_PREFIX):
        raise InvalidPath(f"entry {index} path {path!r} does not start with {RESOURCE_PREFIX}")
    return path


def parse_archive(source: bytes | memoryview, origin: Path | None = None) -> Archive:
    """Parse a GDPC container held in memory."""
    view = memoryview(source)
    header = parse_header(view)

    entries: list[ArchiveEntry] = []
    off = HEADER_LEN
    for i in range(header.entry_count):
        (path_len,) = _unpack(PATH_LEN_FMT, PATH_LEN_LEN, view, off, f"path length of entry {i}")
        off += PATH_LEN_LEN
        if path_len < 0:
            raise Truncated(f"negative path length {path_len} for entry {i}")
        if off + path_len > len(view):
            raise Truncated(f"path of entry {i} runs past end of archive")
        path = _decode_path(bytes(view[off:off + path_len]), i)
        off += path_len

        offset, size, checksum = _unpack(ENTRY_TAIL_FMT, ENTRY_TAIL_LEN, view, off, f"entry {i}")
        off += ENTRY_TAIL_LEN
        entries.append(ArchiveEntry(path=path, offset=int(offset), size=int(size), checksum=bytes(checksum)))

    return Archive(header, entries, view, origin=origin)


def read_archive(path: str | Path) -> Archive:
    """Read a pack from disk."""
    p = Path(path)
    with open(p, "rb") as f:
        data = f.read()
    return parse_archive(data, origin=p)


def is_asset_pack(path: str | Path) -> bool:
    """Sniff the magic without parsing the rest of the file."""
    with open(path, "rb") as f:
        return f.read(len(MAGIC)) == MAGIC
