"""Tag definitions of a pack and the objects they reference.

On disk (`res://packs/<id>/data/default.dungeondraft_tags`):

    {"tags": {"<tag>": ["textures/objects/<file>", ...]},
     "sets": {"<group>": ["<tag>", ...]}}

A tag references the objects listed for it that also exist as entries under
`textures/objects/` in the same pack.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable

from ddpack_archive.reader import Archive, ArchiveEntry
from ddpack_core.errors import MalformedPath, MissingEntry, ParseFailure
from ddpack_core.ids import object_id, split_pack_path
from ddpack_core.paths import is_object_file, is_tags_file

TAGS_KEY = "tags"
GROUPS_KEY = "sets"

TAXONOMY_JSON_KW = {"separators": (",", ":"), "ensure_ascii": False}

# json reports a stray backslash in a string ("textures\objects") as one of these.
_MALFORMED_PATH_ERRORS = ("Invalid \\escape", "Invalid \\uXXXX escape", "Invalid control character")


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


@dataclass
class Taxonomy:
    """Tag -> object identifiers, and group -> member tags, in file order."""

    tags: dict[str, list[str]] = field(default_factory=dict)
    groups: dict[str, list[str]] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def tag_names(self) -> list[str]:
        return list(self.tags)

    def group_names(self) -> list[str]:
        return list(self.groups)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.tags:
            out[TAGS_KEY] = {t: list(objs) for t, objs in self.tags.items()}
        if self.groups:
            out[GROUPS_KEY] = {g: list(members) for g, members in self.groups.items()}
        out.update(self.extra)
        return out

    def to_json_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), **TAXONOMY_JSON_KW).encode("utf-8")

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Taxonomy":
        return Taxonomy(
            tags=_string_lists(d.get(TAGS_KEY, {}), TAGS_KEY),
            groups=_string_lists(d.get(GROUPS_KEY, {}), GROUPS_KEY),
            extra={k: v for k, v in d.items() if k not in (TAGS_KEY, GROUPS_KEY)},
        )


def _string_lists(section: Any, key: str) -> dict[str, list[str]]:
    if not isinstance(section, dict):
        raise ParseFailure(f'"{key}" must be an object, got {type(section).__name__}')
    out: dict[str, list[str]] = {}
    for name, values in section.items():
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise ParseFailure(f'"{key}.{name}" must be a list of strings')
        out[name] = _unique(values)
    return out


def parse_taxonomy(data: bytes | memoryview) -> Taxonomy:
    """Parse tag definitions.

    Raises MalformedPath when the producer wrote Windows paths without
    escaping the backslashes, ParseFailure for every other problem.
    """
    try:
        text = bytes(data).decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseFailure(f"not UTF-8 ({e.reason})") from e

    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        if e.msg.startswith(_MALFORMED_PATH_ERRORS):
            raise MalformedPath(f"{e.msg} at line {e.lineno} column {e.colno}") from e
        raise ParseFailure(f"{e.msg} at line {e.lineno} column {e.colno}") from e
    except RecursionError as e:
        raise ParseFailure("nested too deeply") from e

    if not isinstance(obj, dict):
        raise ParseFailure(f"top level must be an object, got {type(obj).__name__}")
    return Taxonomy.from_dict(obj)


def find_tags_entry(archive: Archive) -> ArchiveEntry:
    found = [e for e in archive if is_tags_file(e.path)]
    if not found:
        raise MissingEntry(str(archive.origin or "<memory>"))
    if len(found) > 1:
        raise ParseFailure("more than one tag definitions entry: " + ", ".join(e.path for e in found))
    return found[0]


def object_ids(archive: Archive) -> set[str]:
    return {object_id(e.path) for e in archive if is_object_file(e.path)}


def reference_counts(taxonomy: Taxonomy, objects: set[str]) -> dict[str, int]:
    """Number of existing objects referencing each tag."""
    return {tag: sum(1 for o in objs if o in objects) for tag, objs in taxonomy.tags.items()}


@dataclass
class TaxonomyIndex:
    entry: ArchiveEntry
    taxonomy: Taxonomy
    objects: set[str]
    references: dict[str, int]

    @property
    def pack_id(self) -> str:
        return split_pack_path(self.entry.path)[0]


def load_taxonomy(archive: Archive) -> TaxonomyIndex:
    entry = find_tags_entry(archive)
    taxonomy = parse_taxonomy(archive.extract(entry))
    objects = object_ids(archive)
    return TaxonomyIndex(
        entry=entry,
        taxonomy=taxonomy,
        objects=objects,
        references=reference_counts(taxonomy, objects),
    )
