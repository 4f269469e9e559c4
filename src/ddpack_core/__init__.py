"""ddpack core - protocol constants, identifiers and errors."""
from .ids import content_checksum, is_unrecorded, object_id, pack_path, split_pack_path
from .errors import ERRORS, FATAL_ERRORS, FormatError, PackError, TaxonomyError, WriteError

__all__ = [
    "content_checksum", "is_unrecorded", "object_id", "pack_path", "split_pack_path",
    "ERRORS", "FATAL_ERRORS", "FormatError", "PackError", "TaxonomyError", "WriteError",
]
