#!/usr/bin/env python3
"""
Writes small sample archives for trying fsdbg by hand.

The newc encoder here is also what the test suite builds its archives with.

Usage:
    python create_test_env.py [output_dir]

Creates:
    good_initramfs.cpio.gz    usr-merged tree, every symlink resolves
    broken_initramfs.cpio     dangling link, symlink cycle, non-executable sh
    rootfs_old.cpio.xz        /etc/passwd 0644
    rootfs_new.cpio.xz        /etc/passwd 0640, one extra file
"""

import gzip
import lzma
import stat
import sys
from pathlib import Path
from typing import Optional

NEWC_MAGIC = b"070701"
TRAILER = "TRAILER!!!"


def align_up(value: int, align: int = 4) -> int:
    return value if value % align == 0 else value + (align - (value % align))


def newc_record(name: str, mode: int, data: bytes = b"", ino: int = 0, uid: int = 0,
                gid: int = 0, mtime: int = 0, nlink: int = 1, rdev=(0, 0),
                namesize: Optional[int] = None, magic: bytes = NEWC_MAGIC) -> bytes:
    """
    One newc header + name + data, both padded to 4 bytes.

    namesize overrides the header field only; the name is always written
    with its NUL, which lets callers produce malformed records.
    """
    name_bytes = name.encode("utf-8") + b"\x00"
    if namesize is None:
        namesize = len(name_bytes)
    fields = (ino, mode, uid, gid, nlink, mtime, len(data), 0, 0,
              rdev[0], rdev[1], namesize, 0)
    record = bytearray(magic + b"".join(f"{v:08x}".encode() for v in fields))
    record += name_bytes
    record += b"\x00" * (align_up(len(record)) - len(record))
    record += data
    record += b"\x00" * (align_up(len(record)) - len(record))
    return bytes(record)


def build_archive(entries) -> bytes:
    """entries: (name, mode, data) tuples in stream order"""
    image = bytearray()
    for ino, (name, mode, data) in enumerate(entries, start=1):
        image += newc_record(name, mode, data, ino)
    image += newc_record(TRAILER, 0)
    return bytes(image)


def d(name):
    return name, stat.S_IFDIR | 0o755, b""


def f(name, perm=0o644, data=b""):
    return name, stat.S_IFREG | perm, data


def ln(name, target):
    return name, stat.S_IFLNK | 0o777, target.encode("utf-8")


def good_initramfs():
    return [
        d("usr"), d("usr/bin"), d("usr/lib"), d("usr/lib64"), d("etc"),
        ln("bin", "usr/bin"), ln("lib", "usr/lib"), ln("lib64", "usr/lib64"),
        f("usr/bin/sh", 0o755, b"#!sh\n"),
        f("usr/lib/systemd/systemd", 0o755),
        ln("init", "usr/lib/systemd/systemd"),
        f("etc/os-release", data=b"NAME=Sample\n"),
        f("etc/passwd", data=b"root:x:0:0:root:/root:/bin/sh\n"),
    ]


def broken_initramfs():
    return [
        d("usr"), d("usr/bin"),
        ln("bin", "usr/bin"),
        f("usr/bin/sh", 0o644, b"#!sh\n"),
        ln("init", "usr/lib/systemd/systemd"),
        ln("loop-a", "loop-b"),
        ln("loop-b", "loop-a"),
    ]


def rootfs(passwd_mode, extra=()):
    return [
        d("etc"), d("usr"), d("usr/bin"),
        f("etc/passwd", passwd_mode, b"root:x:0:0:root:/root:/bin/sh\n"),
        f("usr/bin/sh", 0o755),
        *extra,
    ]


def main() -> int:
    out_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("test_archives")
    out_dir.mkdir(parents=True, exist_ok=True)

    outputs = {
        "good_initramfs.cpio.gz": gzip.compress(build_archive(good_initramfs())),
        "broken_initramfs.cpio": build_archive(broken_initramfs()),
        "rootfs_old.cpio.xz": lzma.compress(build_archive(rootfs(0o644))),
        "rootfs_new.cpio.xz": lzma.compress(
            build_archive(rootfs(0o640, [f("etc/hostname", data=b"sample\n")]))),
    }
    for name, data in outputs.items():
        (out_dir / name).write_bytes(data)
        print(f"Wrote {out_dir / name} ({len(data)} bytes)")

    print("\nTry:")
    print(f"  fsdbg inspect {out_dir / 'good_initramfs.cpio.gz'}")
    print(f"  fsdbg check-symlinks {out_dir / 'broken_initramfs.cpio'}")
    print(f"  fsdbg diff {out_dir / 'rootfs_old.cpio.xz'} {out_dir / 'rootfs_new.cpio.xz'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
