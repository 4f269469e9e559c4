import sys
from pathlib import Path

from ddpack_archive.reader import read_archive


def main():
    if len(sys.argv) != 2:
        print("Usage: corrupt_one_byte.py <pack>")
        raise SystemExit(2)

    p = Path(sys.argv[1])
    archive = read_archive(p)
    target = next((e for e in reversed(archive.entries) if e.size > 0), None)
    if target is None:
        print("Pack has no content to corrupt.")
        raise SystemExit(2)

    # Flip the first content byte of the last non-empty entry so the file
    # table still parses but its checksum no longer matches.
    b = bytearray(p.read_bytes())
    idx = target.offset
    b[idx] ^= 0x01
    p.write_bytes(bytes(b))
    print(f"Corrupted 1 byte at offset {idx} ({target.path}) in {p}")


if __name__ == "__main__":
    main()
