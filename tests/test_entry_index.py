import pytest

from fsdbg.core.cpio_reader import CpioReader
from fsdbg.core.entry import normalize_path, parent_path


@pytest.mark.parametrize("raw,expected", [
    ("/usr/bin/sh", "usr/bin/sh"),
    ("./usr//bin/", "usr/bin"),
    ("usr/./bin", "usr/bin"),
    ("usr/lib/../bin", "usr/bin"),
    ("../../etc/passwd", "etc/passwd"),
    ("/", ""),
    (".", ""),
    ("", ""),
])
def test_normalize_path(raw, expected):
    assert normalize_path(raw) == expected


def test_parent_path():
    assert parent_path("usr/bin/sh") == "usr/bin"
    assert parent_path("init") == ""


def test_exists_ignores_spelling(fs):
    index = fs.index(fs.file("etc/passwd"))
    for spelling in ("etc/passwd", "/etc/passwd", "./etc/passwd", "etc//passwd"):
        assert index.exists(spelling)
        assert spelling in index
    assert not index.exists("etc/shadow")


def test_later_duplicate_wins(fs):
    index = fs.index(
        fs.file("etc/passwd", mode=0o644, size=10),
        fs.file("etc/hostname"),
        fs.file("etc/passwd", mode=0o600, size=20),
    )
    passwd = index.get("etc/passwd")
    assert passwd.size == 20
    assert passwd.permissions == 0o600
    assert len(index) == 2
    assert index.duplicates == 1
    assert index.paths() == ["etc/hostname", "etc/passwd"]


def test_later_duplicate_wins_in_decoded_archive(builder):
    builder.file("init", b"#!/bin/sh\n", mode=0o755)
    builder.symlink("init", "usr/lib/systemd/systemd")
    reader = CpioReader.open(builder.build())

    assert reader.get("init").is_symlink
    assert reader.index.duplicates == 1
    assert len(reader.entries()) == 2
    assert len(reader.index) == 1


def test_implicit_directories(fs):
    index = fs.index(fs.file("usr/lib/modules/6.1.0/kernel/ext4.ko"))

    assert index.has_directory("usr")
    assert index.has_directory("/usr/lib/modules/6.1.0")
    assert index.is_implicit_directory("usr/lib")
    assert not index.exists("usr/lib")
    assert not index.has_directory("usr/lib/modules/6.1.0/kernel/ext4.ko")
    assert not index.has_directory("opt")
    assert index.has_directory("")


def test_explicit_directory_is_not_implicit(fs):
    index = fs.index(fs.dir("etc"), fs.file("etc/fstab"))
    assert index.has_directory("etc")
    assert not index.is_implicit_directory("etc")


def test_root_entry_is_not_indexed(fs):
    index = fs.index(fs.dir("/"), fs.file("etc/hostname"))
    assert len(index) == 1


def test_glob(fs):
    index = fs.index(
        fs.file("usr/lib64/security/pam_unix.so"),
        fs.file("usr/lib64/security/pam_deny.so"),
        fs.file("usr/lib64/security/README"),
        fs.file("usr/lib/modules/6.1.0/kernel/fs/ext4.ko"),
    )
    assert index.glob("usr/lib64/security/pam_*.so") == [
        "usr/lib64/security/pam_unix.so", "usr/lib64/security/pam_deny.so"]
    assert index.glob("/usr/lib/modules/*/kernel/*") == [
        "usr/lib/modules/6.1.0/kernel/fs/ext4.ko"]
    assert index.glob("opt/*") == []


def test_stats(fs):
    index = fs.index(
        fs.dir("etc"),
        fs.file("etc/passwd", size=100),
        fs.file("etc/group", size=50),
        fs.link("bin", "usr/bin"),
    )
    stats = index.stats()
    assert (stats.files, stats.directories, stats.symlinks, stats.other) == (2, 1, 1, 0)
    assert stats.total == 4
    assert stats.total_size == 150


def test_kind_filters(fs):
    index = fs.index(fs.dir("etc"), fs.file("etc/passwd"), fs.link("bin", "usr/bin"))
    assert [e.path for e in index.files()] == ["etc/passwd"]
    assert [e.path for e in index.directories()] == ["etc"]
    assert [e.path for e in index.symlinks()] == ["bin"]


def test_mode_string(fs):
    assert fs.dir("etc").mode_string() == "drwxr-xr-x"
    assert fs.file("etc/shadow", mode=0o640).mode_string() == "-rw-r-----"
    assert fs.file("usr/bin/sudo", mode=0o4755).mode_string() == "-rwsr-xr-x"
    assert fs.link("bin", "usr/bin").mode_string() == "lrwxrwxrwx"
