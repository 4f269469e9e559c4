from pathlib import Path

import click

from ddpack_core.errors import FormatError
from .logic import canonical_json, verify_pack
from .reader import read_archive


@click.group()
def main():
    pass


@main.command("pack")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def pack_cmd(path: Path):
    """Verify header, file table and checksums of one pack."""
    result = verify_pack(path)
    click.echo(canonical_json(result))
    if result["status"] != "PASS":
        raise SystemExit(1)


@main.command("ls")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def ls_cmd(path: Path):
    """List the file table of one pack."""
    try:
        archive = read_archive(path)
    except FormatError as e:
        click.echo(f"FATAL: {e}")
        raise SystemExit(1)

    click.echo(f"GDPC {archive.header} ({len(archive)} entries, {archive.size} bytes)")
    for entry in archive:
        click.echo(f"{entry.offset:>12} {entry.size:>10} {entry.checksum.hex()} {entry.path}")


if __name__ == "__main__":
    main()
