"""ddpack archive - GDPC container reader, writer and verifier."""
from .reader import Archive, ArchiveEntry, ArchiveHeader, is_asset_pack, parse_archive, read_archive
from .writer import pack_archive, write_archive

__all__ = [
    "Archive", "ArchiveEntry", "ArchiveHeader", "is_asset_pack", "parse_archive", "read_archive",
    "pack_archive", "write_archive",
]
