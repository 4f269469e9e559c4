import json
import random
import string
from pathlib import Path

from ddpack_archive.writer import pack_archive
from ddpack_core.ids import pack_path
from ddpack_core.protocol import PACK_FILE_NAME, PACK_SUFFIX, PACKS_PREFIX, TAGS_FILE_NAME

# Stand-in for PNG payloads: the signature plus some filler.
FAKE_PNG = b"\x89PNG\r\n\x1a\n" + bytes(range(32))

OBJECTS = [
    "textures/objects/sample_barrel.png",
    "textures/objects/sample_cauldron.png",
    "textures/objects/crates/crate_small.png",
]
OTHER_FILES = [
    "textures/portals/sample_door.png",
    "textures/walls/sample_wall.png",
]


def random_pack_id() -> str:
    return "".join(random.choices(string.ascii_letters + string.digits, k=8))


def sample_tags() -> dict:
    # "Unused" and "Ghost" reference nothing that exists, so "Empty Set" goes too.
    return {
        "tags": {
            "Barrels": ["textures/objects/sample_barrel.png"],
            "Cauldrons": ["textures/objects/sample_cauldron.png", "textures/objects/gone.png"],
            "Crates": ["textures/objects/crates/crate_small.png"],
            "Unused": [],
            "Ghost": ["textures/objects/missing.png"],
        },
        "sets": {
            "Containers": ["Barrels", "Cauldrons", "Crates", "Unused"],
            "Empty Set": ["Unused", "Ghost"],
        },
    }


def generate_pack(output_dir: str, malformed_tags: bool = False, bad_magic: bool = False) -> Path:
    pack_id = random_pack_id()
    meta = {
        "name": f"sample_{pack_id.lower()}",
        "id": pack_id,
        "version": "1",
        "author": "ddpack",
        "custom_color_overrides": {
            "enabled": False,
            "min_redness": 0.1,
            "min_saturation": 0,
            "red_tolerance": 0.04,
        },
    }
    meta_bytes = json.dumps(meta, indent="\t").encode("utf-8")

    tags_bytes = json.dumps(sample_tags(), indent="\t").encode("utf-8")
    if malformed_tags:
        # Some exporters write Windows separators without escaping them.
        tags_bytes = tags_bytes.replace(b"textures/objects/", b"textures\\objects\\")

    entries = [
        (f"{PACKS_PREFIX}{pack_id}.json", meta_bytes),
        (pack_path(pack_id, PACK_FILE_NAME), meta_bytes),
        (pack_path(pack_id, TAGS_FILE_NAME), tags_bytes),
    ]
    entries += [(pack_path(pack_id, rel), FAKE_PNG + rel.encode("utf-8")) for rel in OBJECTS + OTHER_FILES]

    data = pack_archive(entries)
    if bad_magic:
        data = b"PK\x03\x04" + data[4:]

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    target = out / f"sample-{pack_id}{PACK_SUFFIX}"
    target.write_bytes(data)
    print(f"GENERATED: {target}")
    return target


if __name__ == "__main__":
    import sys

    # Usage:
    #   python tools/make_sample_pack.py OUT_DIR [--runs N] [--malformed-tags] [--bad-magic]

    args = [a for a in sys.argv[1:] if a]

    def pop_flag(arg_list: list[str], flag: str) -> tuple[bool, list[str]]:
        """Remove a boolean flag from an argv-style list."""
        if flag in arg_list:
            return True, [a for a in arg_list if a != flag]
        return False, arg_list

    malformed, args = pop_flag(args, "--malformed-tags")
    bad_magic, args = pop_flag(args, "--bad-magic")

    runs = 1
    if "--runs" in args:
        i = args.index("--runs")
        if i + 1 >= len(args):
            raise SystemExit("--runs requires a value")
        runs = int(args[i + 1])
        args = args[:i] + args[i + 2:]

    out = args[0] if len(args) > 0 else "sample_packs"

    for _ in range(runs):
        generate_pack(out, malformed_tags=malformed, bad_magic=bad_magic)
