"""Per-pack clean: read, verify, load tags, clean, write.

Each pack is an independent transform. Failures that only concern one pack
come back as a result value so a batch keeps going; aggregate counts are the
caller's job (`run_batch` / `BatchSummary`).
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable
from warnings import warn

from ddpack_archive.reader import Archive, read_archive
from ddpack_archive.writer import write_archive
from ddpack_core.errors import FATAL_ERRORS, ChecksumMismatch, PackError, TaxonomyError

from .cleaner import clean_taxonomy
from .meta import read_pack_meta
from .taxonomy import load_taxonomy

CLEANED = "CLEANED"
SKIPPED = "SKIPPED"
FAILED = "FAILED"

WarningSink = Callable[[Path, str], None]


@dataclass(frozen=True)
class PipelineOptions:
    """Knobs for one batch run.

    overwrite : replace existing output files.
    verify : recompute entry checksums before cleaning; skip packs that fail.
    tolerate_mismatches : with verify, only warn about checksum mismatches
        and write the pack anyway (the output gets fresh checksums).
    workers : packs processed concurrently (1 = sequential).
    """

    overwrite: bool = False
    verify: bool = False
    tolerate_mismatches: bool = False
    workers: int = 1

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError("PipelineOptions.workers must be >= 1")
        if self.tolerate_mismatches and not self.verify:
            raise ValueError("PipelineOptions.tolerate_mismatches requires verify=True")


@dataclass(frozen=True)
class PackResult:
    source: Path
    output: Path | None
    status: str
    code: str | None = None
    reason: str | None = None
    pack_id: str | None = None
    pack_name: str | None = None
    version: str | None = None
    entries: int = 0
    removed_tags: tuple[str, ...] = ()
    removed_groups: tuple[str, ...] = ()
    pruned_refs: int = 0
    checksum_mismatches: int = 0
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "source": str(self.source),
            "output": str(self.output) if self.output else None,
            "status": self.status,
            "code": self.code,
            "reason": self.reason,
            "pack_id": self.pack_id,
            "pack_name": self.pack_name,
            "version": self.version,
            "entries": int(self.entries),
            "removed_tags": len(self.removed_tags),
            "removed_groups": len(self.removed_groups),
            "pruned_refs": int(self.pruned_refs),
            "checksum_mismatches": int(self.checksum_mismatches),
        }


def _not_cleaned(source: Path, status: str, err: PackError, warnings: list[str], **known) -> PackResult:
    return PackResult(
        source=source,
        output=None,
        status=status,
        code=err.code,
        reason=str(err),
        warnings=tuple(warnings),
        **known,
    )


def _check_integrity(archive: Archive, options: PipelineOptions, warnings: list[str]) -> int:
    problems = archive.verify_all()
    for p in problems:
        if not (options.tolerate_mismatches and isinstance(p, ChecksumMismatch)):
            raise p
        warnings.append(str(p))
    return len(problems)


def clean_pack(source: str | Path, output: str | Path, options: PipelineOptions | None = None) -> PackResult:
    """Clean the tags of one pack and write the result to `output`.

    BadMagic and ReservedNonZero propagate. Every other PackError yields a
    SKIPPED result and no output file.
    """
    options = options or PipelineOptions()
    source, output = Path(source), Path(output)
    warnings: list[str] = []
    known: dict = {}

    try:
        archive = read_archive(source)
    except FATAL_ERRORS:
        raise
    except PackError as e:
        return _not_cleaned(source, SKIPPED, e, warnings)
    except OSError as e:
        return PackResult(source=source, output=None, status=SKIPPED, code="E_IO", reason=f"could not read: {e}")

    known["version"] = str(archive.header)
    known["entries"] = len(archive)

    try:
        try:
            meta = read_pack_meta(archive)
        except TaxonomyError as e:
            meta = None
            warnings.append(str(e))
        if meta is not None:
            known["pack_id"], known["pack_name"] = meta.id, meta.name

        mismatches = _check_integrity(archive, options, warnings) if options.verify else 0
        known["checksum_mismatches"] = mismatches

        index = load_taxonomy(archive)
        known.setdefault("pack_id", index.pack_id)
        cleaned = clean_taxonomy(index.taxonomy, index.references, index.objects)
        tags_bytes = cleaned.taxonomy.to_json_bytes()

        entries = [
            (e.path, tags_bytes if e.path == index.entry.path else archive.extract(e))
            for e in archive.entries
        ]
        write_archive(
            output,
            entries,
            version=archive.header.version,
            reserved=archive.header.reserved,
            overwrite=options.overwrite,
        )
    except PackError as e:
        return _not_cleaned(source, SKIPPED, e, warnings, **known)

    return PackResult(
        source=source,
        output=output,
        status=CLEANED,
        removed_tags=cleaned.removed_tags,
        removed_groups=cleaned.removed_groups,
        pruned_refs=cleaned.pruned_refs,
        warnings=tuple(warnings),
        **known,
    )


def process_pack(source: str | Path, output: str | Path, options: PipelineOptions | None = None) -> PackResult:
    """Like clean_pack, but an unreadable format becomes a FAILED result."""
    try:
        return clean_pack(source, output, options)
    except FATAL_ERRORS as e:
        return _not_cleaned(Path(source), FAILED, e, [])


@dataclass
class BatchSummary:
    results: list[PackResult] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def processed(self) -> int:
        return self._count(CLEANED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def removed_tags(self) -> int:
        return sum(len(r.removed_tags) for r in self.results)

    @property
    def removed_groups(self) -> int:
        return sum(len(r.removed_groups) for r in self.results)


def _warn(path: Path, reason: str) -> None:
    warn(f"{path}: {reason}")


def _emit(result: PackResult, sink: WarningSink) -> None:
    for w in result.warnings:
        sink(result.source, w)
    if result.status != CLEANED:
        sink(result.source, f"{result.status.lower()}: {result.reason}")


def run_batch(
    jobs: Iterable[tuple[Path, Path]],
    options: PipelineOptions | None = None,
    on_warning: WarningSink | None = None,
    on_result: Callable[[PackResult], None] | None = None,
) -> BatchSummary:
    """Process (source, output) pairs. Results keep the input order."""
    options = options or PipelineOptions()
    sink = on_warning or _warn
    jobs = list(jobs)
    summary = BatchSummary()

    def run(job: tuple[Path, Path]) -> PackResult:
        return process_pack(job[0], job[1], options)

    def collect(result: PackResult) -> None:
        _emit(result, sink)
        summary.results.append(result)
        if on_result is not None:
            on_result(result)

    if options.workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=options.workers) as pool:
            for result in pool.map(run, jobs):
                collect(result)
    else:
        for job in jobs:
            collect(run(job))
    return summary
