import hashlib
import json
import struct

PACK_ID = "12345678"

PACK_META = {
    "name": "example_pack",
    "id": PACK_ID,
    "version": "1",
    "author": "brass_phoenix",
    "custom_color_overrides": {
        "enabled": False,
        "min_redness": 0.1,
        "min_saturation": 0,
        "red_tolerance": 0.04,
    },
}

PACK_TAGS = {
    "tags": {
        "MyTag": ["textures/objects/random.png"],
        "Colorable": ["textures/objects/sample_cauldron.png"],
    },
    "sets": {
        "Example Set": ["MyTag"],
        "Paint": ["Colorable"],
    },
}

FAKE_PNG = bytes(10)


def build_raw_pack(files, version=(1, 3, 2, 4), reserved=None, checksums=True, magic=b"GDPC"):
    """Assemble GDPC bytes by hand, independent of the writer under test."""
    reserved = reserved or [0] * 16
    table = b""
    encoded = [(p.encode("utf-8") if isinstance(p, str) else p, data) for p, data in files]
    offset = 4 + 16 + 64 + 4 + sum(4 + len(p) + 8 + 8 + 16 for p, _ in encoded)
    for path, data in encoded:
        md5 = hashlib.md5(data).digest() if checksums else bytes(16)
        table += struct.pack("<i", len(path)) + path + struct.pack("<qq", offset, len(data)) + md5
        offset += len(data)
    header = magic + struct.pack("<4i", *version) + struct.pack("<16i", *reserved) + struct.pack("<i", len(encoded))
    return header + table + b"".join(data for _, data in encoded)


def pack_files(tags=None, objects=("textures/objects/random.png",), pack_id=PACK_ID):
    meta = json.dumps(PACK_META).encode("utf-8")
    tags_bytes = tags if isinstance(tags, bytes) else json.dumps(PACK_TAGS if tags is None else tags).encode("utf-8")
    files = [
        (f"res://packs/{pack_id}.json", meta),
        (f"res://packs/{pack_id}/pack.json", meta),
        (f"res://packs/{pack_id}/data/default.dungeondraft_tags", tags_bytes),
    ]
    files += [(f"res://packs/{pack_id}/{o}", FAKE_PNG) for o in objects]
    files.append((f"res://packs/{pack_id}/textures/portals/door.png", FAKE_PNG))
    return files
