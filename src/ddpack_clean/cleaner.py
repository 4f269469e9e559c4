"""Removal of unreferenced tags and of the groups they leave empty."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, Mapping

from .taxonomy import Taxonomy


@dataclass(frozen=True)
class CleanResult:
    taxonomy: Taxonomy
    removed_tags: tuple[str, ...] = ()
    removed_groups: tuple[str, ...] = ()
    pruned_refs: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.removed_tags or self.removed_groups or self.pruned_refs)


def clean_taxonomy(
    taxonomy: Taxonomy,
    references: Mapping[str, int],
    objects: Collection[str] | None = None,
) -> CleanResult:
    """Return a cleaned copy of `taxonomy`; the input is left untouched.

    Tags are removed first, then dropped from their groups, then empty groups
    are removed. A group is only ever removed because its tags went away.
    If `objects` is given, object identifiers that do not exist in the pack
    are also dropped from the surviving tags.
    """
    def live(tag: str) -> bool:
        return references.get(tag, 0) > 0

    # 1. tags without referencing objects
    tags: dict[str, list[str]] = {}
    removed_tags: list[str] = []
    pruned = 0
    for tag, objs in taxonomy.tags.items():
        if not live(tag):
            removed_tags.append(tag)
            continue
        if objects is not None:
            kept = [o for o in objs if o in objects]
            pruned += len(objs) - len(kept)
            tags[tag] = kept
        else:
            tags[tag] = list(objs)

    # 2. + 3. members that are gone, then groups left empty
    groups: dict[str, list[str]] = {}
    removed_groups: list[str] = []
    for group, members in taxonomy.groups.items():
        kept = [m for m in members if live(m)]
        if kept:
            groups[group] = kept
        else:
            removed_groups.append(group)

    return CleanResult(
        taxonomy=Taxonomy(tags=tags, groups=groups, extra=dict(taxonomy.extra)),
        removed_tags=tuple(removed_tags),
        removed_groups=tuple(removed_groups),
        pruned_refs=pruned,
    )
