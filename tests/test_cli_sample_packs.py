import json
import os
import subprocess
import sys
from pathlib import Path

import pandas as pd

from ddpack_archive.reader import read_archive
from ddpack_clean.taxonomy import load_taxonomy

REPO = Path(__file__).resolve().parents[1]


def run(args, cwd=REPO):
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO / "src"), env.get("PYTHONPATH")]))
    return subprocess.run([sys.executable, *args], cwd=cwd, env=env, check=False, capture_output=True, text=True)


def test_clean_sample_packs(tmp_path):
    in_dir = tmp_path / "packs"
    out_dir = tmp_path / "cleaned"
    report = tmp_path / "report.parquet"

    r = run(["tools/make_sample_pack.py", str(in_dir), "--runs", "2"])
    assert r.returncode == 0, r.stderr + r.stdout
    r = run(["tools/make_sample_pack.py", str(in_dir), "--malformed-tags"])
    assert r.returncode == 0, r.stderr + r.stdout

    r = run(["-m", "ddpack_clean.cli", str(in_dir), str(out_dir), "--verify", "--report", str(report)])
    assert r.returncode == 0, r.stderr + r.stdout
    assert "Packs processed: 2, skipped: 1, failed: 0" in r.stdout
    assert "Removed 4 empty tags and 2 empty tag groups." in r.stdout
    assert "E_TAGS_MALFORMED_PATH" not in r.stdout
    assert "Tag definitions contain unescaped backslashes" in r.stderr

    cleaned = sorted(out_dir.glob("*.dungeondraft_pack"))
    assert len(cleaned) == 2
    index = load_taxonomy(read_archive(cleaned[0]))
    assert index.taxonomy.tag_names() == ["Barrels", "Cauldrons", "Crates"]
    assert index.taxonomy.groups == {"Containers": ["Barrels", "Cauldrons", "Crates"]}
    assert index.taxonomy.tags["Cauldrons"] == ["textures/objects/sample_cauldron.png"]

    df = pd.read_parquet(report)
    assert sorted(df["status"]) == ["CLEANED", "CLEANED", "SKIPPED"]

    # Existing outputs are left alone without --overwrite.
    r = run(["-m", "ddpack_clean.cli", str(in_dir), str(out_dir)])
    assert r.returncode == 0, r.stderr + r.stdout
    assert "Packs processed: 0, skipped: 3, failed: 0" in r.stdout


def test_bad_magic_fails_the_run(tmp_path):
    in_dir = tmp_path / "packs"
    r = run(["tools/make_sample_pack.py", str(in_dir), "--bad-magic"])
    assert r.returncode == 0, r.stderr + r.stdout

    r = run(["-m", "ddpack_clean.cli", str(in_dir), str(tmp_path / "out")])
    assert r.returncode == 1
    assert "failed: 1" in r.stdout


def test_empty_input_dir(tmp_path):
    (tmp_path / "packs").mkdir()
    r = run(["-m", "ddpack_clean.cli", str(tmp_path / "packs"), str(tmp_path / "out")])
    assert r.returncode == 1
    assert r.stdout.startswith("FATAL:")


def test_verify_detects_corruption(tmp_path):
    r = run(["tools/make_sample_pack.py", str(tmp_path)])
    assert r.returncode == 0, r.stderr + r.stdout
    pack = next(tmp_path.glob("*.dungeondraft_pack"))

    r = run(["-m", "ddpack_archive.cli", "pack", str(pack)])
    assert r.returncode == 0, r.stderr + r.stdout
    result = json.loads(r.stdout)
    assert result["status"] == "PASS"
    assert result["entries"] == 8

    r = run(["scripts/corrupt_one_byte.py", str(pack)])
    assert r.returncode == 0, r.stderr + r.stdout

    r = run(["-m", "ddpack_archive.cli", "pack", str(pack)])
    assert r.returncode == 1
    result = json.loads(r.stdout)
    assert result["status"] == "FAIL"
    assert [e["code"] for e in result["errors"]] == ["E_CHECKSUM_MISMATCH"]
    assert result["errors"][0]["path"].endswith("textures/walls/sample_wall.png")

    r = run(["-m", "ddpack_archive.cli", "ls", str(pack)])
    assert r.returncode == 0, r.stderr + r.stdout
    assert "sample_wall.png" in r.stdout


def test_verify_skips_corrupted_pack_unless_lenient(tmp_path):
    in_dir = tmp_path / "packs"
    r = run(["tools/make_sample_pack.py", str(in_dir)])
    assert r.returncode == 0, r.stderr + r.stdout
    pack = next(in_dir.glob("*.dungeondraft_pack"))
    r = run(["scripts/corrupt_one_byte.py", str(pack)])
    assert r.returncode == 0, r.stderr + r.stdout

    out_dir = tmp_path / "out"
    r = run(["-m", "ddpack_clean.cli", str(in_dir), str(out_dir), "--verify"])
    assert r.returncode == 0, r.stderr + r.stdout
    assert "Packs processed: 0, skipped: 1, failed: 0" in r.stdout
    assert "sample_wall.png" in r.stderr
    assert not (out_dir / pack.name).exists()

    r = run(["-m", "ddpack_clean.cli", str(in_dir), str(out_dir), "--lenient-checksums"])
    assert r.returncode == 0, r.stderr + r.stdout
    assert "Packs processed: 1, skipped: 0, failed: 0" in r.stdout
    assert (out_dir / pack.name).exists()
