"""ddpack-clean - remove unused tags and tag groups from Dungeondraft asset packs."""
from __future__ import annotations

from pathlib import Path

import click

from ddpack_core.protocol import PACK_SUFFIX
from .pipeline import CLEANED, PackResult, PipelineOptions, run_batch
from .report import write_report


def find_packs(input_path: Path) -> list[Path]:
    """A single pack file, or every pack directly inside a directory."""
    if input_path.is_file():
        return [input_path]
    return sorted(p for p in input_path.glob(f"*{PACK_SUFFIX}") if p.is_file())


def output_path_for(source: Path, output_dir: Path) -> Path:
    return output_dir / source.name


def _echo_result(result: PackResult, verbose: bool) -> None:
    if result.status != CLEANED:
        return
    click.echo(
        f"PASS: {result.source.name} -> {result.output} "
        f"(removed {len(result.removed_tags)} tags, {len(result.removed_groups)} groups)"
    )
    if verbose:
        click.echo(f"  Godot package version: {result.version}")
        click.echo(f"  Files in package: {result.entries}")
        click.echo(f"  Pack: {result.pack_name or '?'} ({result.pack_id or '?'})")
        for tag in result.removed_tags:
            click.echo(f"  - tag: {tag}")
        for group in result.removed_groups:
            click.echo(f"  - group: {group}")
        if result.pruned_refs:
            click.echo(f"  Dropped {result.pruned_refs} references to missing objects")


@click.command()
@click.argument("input_path", metavar="INPUT", type=click.Path(exists=True, path_type=Path))
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--overwrite", is_flag=True, help="Replace existing files in OUTPUT_DIR")
@click.option("--verify", "verify_checksums", is_flag=True, help="Check entry checksums and skip packs that fail")
@click.option(
    "--lenient-checksums",
    "lenient",
    is_flag=True,
    help="Only warn about checksum mismatches and clean the pack anyway (implies --verify)",
)
@click.option(
    "--workers",
    default=1,
    show_default=True,
    envvar="DDPACK_WORKERS",
    type=click.IntRange(min=1),
    help="Packs processed in parallel",
)
@click.option("--report", type=click.Path(dir_okay=False, path_type=Path), help="Write a Parquet report")
@click.option("-v", "--verbose", is_flag=True, help="Print extra info")
def main(
    input_path: Path,
    output_dir: Path,
    overwrite: bool,
    verify_checksums: bool,
    lenient: bool,
    workers: int,
    report: Path | None,
    verbose: bool,
) -> None:
    """Remove empty tags and tag groups from the packs in INPUT."""
    packs = find_packs(input_path)
    if not packs:
        click.echo(f"FATAL: no {PACK_SUFFIX} files in {input_path}")
        raise SystemExit(1)

    options = PipelineOptions(
        overwrite=overwrite,
        verify=verify_checksums or lenient,
        tolerate_mismatches=lenient,
        workers=workers,
    )
    output_dir.mkdir(parents=True, exist_ok=True)

    def on_warning(path: Path, reason: str) -> None:
        click.echo(f"WARN: {path}: {reason}", err=True)

    summary = run_batch(
        [(p, output_path_for(p, output_dir)) for p in packs],
        options,
        on_warning=on_warning,
        on_result=lambda r: _echo_result(r, verbose),
    )

    if report is not None:
        write_report(summary.results, report)

    click.echo(
        f"Packs processed: {summary.processed}, skipped: {summary.skipped}, failed: {summary.failed}"
    )
    click.echo(f"Removed {summary.removed_tags} empty tags and {summary.removed_groups} empty tag groups.")
    if summary.failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
