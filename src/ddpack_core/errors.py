"""Error codes and exception hierarchy shared by reader, writer and pipeline."""
from __future__ import annotations

ERRORS = {
    "E_BAD_MAGIC": "File does not start with the GDPC magic",
    "E_RESERVED_NONZERO": "Header reserved fields are not zero",
    "E_TRUNCATED": "Archive is shorter than its file table claims",
    "E_CHECKSUM_MISMATCH": "Entry content does not match its stored checksum",
    "E_INVALID_PATH": "Entry path is not a valid resource path",
    "E_TAGS_MALFORMED_PATH": "Tag definitions contain unescaped backslashes",
    "E_TAGS_PARSE": "Tag definitions could not be parsed",
    "E_TAGS_MISSING": "Archive has no tag definitions",
    "E_DUPLICATE_PATH": "Two entries share the same path",
    "E_ALREADY_EXISTS": "Output file exists and overwrite is disabled",
    "E_IO": "Could not write output archive",
}


class PackError(Exception):
    """Base for every archive-local failure. `code` is a stable key into ERRORS."""

    code = "E_PACK"

    def __init__(self, detail: str = "", **context):
        self.detail = detail
        self.context = context
        message = ERRORS.get(self.code, self.code)
        super().__init__(f"{message}: {detail}" if detail else message)

    @property
    def message(self) -> str:
        return ERRORS.get(self.code, self.code)

    def to_dict(self) -> dict:
        out = {"code": self.code, "message": self.message}
        if self.detail:
            out["detail"] = self.detail
        out.update(self.context)
        return out


class FormatError(PackError, ValueError):
    """The container itself is not what the reader expects."""


class BadMagic(FormatError):
    code = "E_BAD_MAGIC"


class ReservedNonZero(FormatError):
    code = "E_RESERVED_NONZERO"


class Truncated(FormatError):
    code = "E_TRUNCATED"


class ChecksumMismatch(FormatError):
    code = "E_CHECKSUM_MISMATCH"


class InvalidPath(FormatError):
    code = "E_INVALID_PATH"


class TaxonomyError(PackError, ValueError):
    """The tag definitions of a pack are missing or unreadable."""


class MalformedPath(TaxonomyError):
    code = "E_TAGS_MALFORMED_PATH"


class ParseFailure(TaxonomyError):
    code = "E_TAGS_PARSE"


class MissingEntry(TaxonomyError):
    code = "E_TAGS_MISSING"


class WriteError(PackError):
    """Producing the output archive failed."""


class DuplicatePath(WriteError):
    code = "E_DUPLICATE_PATH"


class AlreadyExists(WriteError):
    code = "E_ALREADY_EXISTS"


class IOFailure(WriteError):
    code = "E_IO"


# Formats the tool does not understand at all; these abort the pack outright.
FATAL_ERRORS = (BadMagic, ReservedNonZero)
