"""Dungeondraft asset pack protocol constants.

Single source of truth for the GDPC container layout and the virtual path
conventions used inside a pack. Reader and Writer must remain synchronized.
"""

# File magic ("GDPC", 0x43504447 read as a little-endian int32)
MAGIC = b"GDPC"

VERSION_FIELDS = 4
RESERVED_FIELDS = 16

# Header: [Magic(4) | Version(4 x i32) | Reserved(16 x i32) | EntryCount(i32)] = 88 bytes
HEADER_FMT = "<4s4i16ii"
HEADER_LEN = 88

# Entry: [PathLen(i32) | Path(PathLen) | Offset(i64) | Size(i64) | Checksum(16)]
PATH_LEN_FMT = "<i"
PATH_LEN_LEN = 4
ENTRY_TAIL_FMT = "<qq16s"
ENTRY_TAIL_LEN = 32
CHECKSUM_LEN = 16

# Version written when the caller does not supply one (Dungeondraft 1.0.x exports)
DEFAULT_VERSION = (1, 3, 2, 1)

# Virtual paths
RESOURCE_PREFIX = "res://"
PACKS_PREFIX = "res://packs/"
PACK_FILE_NAME = "pack.json"
TAGS_FILE_NAME = "data/default.dungeondraft_tags"
OBJECTS_DIR = "textures/objects/"

PACK_SUFFIX = ".dungeondraft_pack"
