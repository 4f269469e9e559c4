import hashlib

import pytest

from ddpack_archive.reader import parse_archive, read_archive
from ddpack_archive.writer import pack_archive, write_archive
from ddpack_core.errors import AlreadyExists, DuplicatePath, InvalidPath, IOFailure
from ddpack_core.protocol import DEFAULT_VERSION, HEADER_LEN

from packs import build_raw_pack

ENTRIES = [
    ("res://packs/abc.json", b'{"id":"abc"}'),
    ("res://packs/abc/textures/objects/rock.png", b"\x89PNG" + bytes(20)),
    ("res://packs/abc/empty.txt", b""),
    ("res://packs/abc/data/été.txt", "été".encode("utf-8")),
]


def test_round_trip_entries():
    archive = parse_archive(pack_archive(ENTRIES))

    assert archive.header.version == DEFAULT_VERSION
    assert archive.paths() == [p for p, _ in ENTRIES]
    for entry, (_, content) in zip(archive.entries, ENTRIES):
        assert archive.read_bytes(entry) == content
        assert entry.checksum == hashlib.md5(content).digest()


def test_every_checksum_verifies():
    archive = parse_archive(pack_archive(ENTRIES))
    assert all(archive.verify(e) for e in archive.entries)
    assert archive.verify_all() == []


def test_layout_is_sequential_after_table():
    archive = parse_archive(pack_archive(ENTRIES))
    table_end = HEADER_LEN + sum(4 + len(p.encode("utf-8")) + 32 for p, _ in ENTRIES)

    assert archive.entries[0].offset == table_end
    for prev, cur in zip(archive.entries, archive.entries[1:]):
        assert cur.offset == prev.end
    assert archive.entries[-1].end == archive.size


def test_output_is_deterministic_and_matches_reference_layout():
    version = (1, 3, 2, 4)
    assert pack_archive(ENTRIES, version=version) == pack_archive(ENTRIES, version=version)
    assert pack_archive(ENTRIES, version=version) == build_raw_pack(ENTRIES, version=version)


def test_accepts_memoryview_content():
    source = parse_archive(pack_archive(ENTRIES))
    copied = pack_archive([(e.path, source.extract(e)) for e in source.entries])
    assert copied == pack_archive(ENTRIES)


def test_empty_archive():
    archive = parse_archive(pack_archive([]))
    assert len(archive) == 0
    assert archive.size == HEADER_LEN


def test_duplicate_path_rejected_without_output(tmp_path):
    target = tmp_path / "dup.dungeondraft_pack"
    with pytest.raises(DuplicatePath):
        write_archive(target, [("res://a.png", b"1"), ("res://a.png", b"2")])
    assert not target.exists()
    assert list(tmp_path.iterdir()) == []


def test_path_without_prefix_rejected():
    with pytest.raises(InvalidPath):
        pack_archive([("a.png", b"1")])


def test_bad_header_fields():
    with pytest.raises(ValueError):
        pack_archive(ENTRIES, version=(1, 2, 3))
    with pytest.raises(ValueError):
        pack_archive(ENTRIES, reserved=[0] * 15)


def test_write_and_read_back(tmp_path):
    target = tmp_path / "out.dungeondraft_pack"
    size = write_archive(target, ENTRIES, version=(4, 3, 2, 1))

    assert target.stat().st_size == size
    archive = read_archive(target)
    assert archive.header.version == (4, 3, 2, 1)
    assert [archive.read_bytes(e) for e in archive.entries] == [c for _, c in ENTRIES]
    assert list(tmp_path.glob("*.tmp")) == []


def test_overwrite_gating(tmp_path):
    target = tmp_path / "out.dungeondraft_pack"
    target.write_bytes(b"old content that is not a pack")

    with pytest.raises(AlreadyExists):
        write_archive(target, ENTRIES)
    assert target.read_bytes() == b"old content that is not a pack"

    write_archive(target, ENTRIES, overwrite=True)
    assert target.read_bytes() == pack_archive(ENTRIES)


def test_unwritable_target_is_io_failure(tmp_path):
    target = tmp_path / "missing_dir" / "out.dungeondraft_pack"

    with pytest.raises(IOFailure) as exc:
        write_archive(target, ENTRIES)
    assert exc.value.code == "E_IO"
    assert not target.exists()
    assert not target.parent.exists()


def test_leftover_stage_file_is_left_alone(tmp_path):
    target = tmp_path / "out.dungeondraft_pack"
    leftover = tmp_path / "out.dungeondraft_pack.tmp"
    leftover.write_bytes(b"another writer's stage")

    write_archive(target, ENTRIES)

    assert read_archive(target).paths() == [p for p, _ in ENTRIES]
    assert leftover.read_bytes() == b"another writer's stage"
    assert sorted(tmp_path.iterdir()) == [target, leftover]
