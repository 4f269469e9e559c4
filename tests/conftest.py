import pytest

from packs import build_raw_pack, pack_files


@pytest.fixture
def raw_pack() -> bytes:
    return build_raw_pack(pack_files())


@pytest.fixture
def pack_on_disk(tmp_path):
    def make(name="example.dungeondraft_pack", **kw):
        p = tmp_path / "in" / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(build_raw_pack(pack_files(**kw)))
        return p
    return make
