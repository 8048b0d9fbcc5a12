import gzip
import hashlib
import json
import logging

import pytest

from fsdbg.app import DEFAULT_CONFIG, LOG_DIR_ENV, FsdbgApp
from fsdbg.checklists import ChecklistType
from fsdbg.core import erofs_reader
from fsdbg.core.archive import EROFS_MAGIC, EROFS_MAGIC_OFFSET, ArchiveFormat
from fsdbg.core.diff_engine import ChangeKind
from fsdbg.core.errors import ErrorCode, InvalidArgumentError, UnsupportedFormatError


@pytest.fixture
def app(monkeypatch):
    monkeypatch.delenv(LOG_DIR_ENV, raising=False)
    return FsdbgApp()


@pytest.fixture
def initramfs(builder, write_archive):
    builder.dir("usr/bin")
    builder.file("usr/bin/sh", b"\x7fELF", mode=0o755)
    builder.symlink("bin", "usr/bin")
    builder.symlink("init", "usr/lib/systemd/systemd")
    builder.file("etc/passwd", b"root:x:0:0::/root:/bin/sh\n")
    return write_archive(gzip.compress(builder.build()), "initramfs.img")


def test_defaults(app):
    assert app.config == DEFAULT_CONFIG
    assert app.max_archive_size == 2048 * 1024 * 1024
    assert app.logger.name == "fsdbg"
    assert not app.logger.propagate


def test_config_file_and_overrides(tmp_path, monkeypatch):
    monkeypatch.delenv(LOG_DIR_ENV, raising=False)
    config_path = tmp_path / "fsdbg.json"
    config_path.write_text(json.dumps({"symlink_max_hops": 8, "log_level": "INFO"}))

    app = FsdbgApp(config_path=config_path, config={"log_level": "DEBUG", "log_dir": None})
    assert app.config["symlink_max_hops"] == 8
    assert app.engine.max_hops == 8
    assert app.config["log_level"] == "DEBUG"
    assert app.logger.level == logging.DEBUG


def test_broken_config_keeps_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv(LOG_DIR_ENV, raising=False)
    config_path = tmp_path / "fsdbg.json"
    config_path.write_text("{not json")
    assert FsdbgApp(config_path=config_path).config == DEFAULT_CONFIG


def test_log_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path / "logs"))
    app = FsdbgApp()
    assert len(app.logger.handlers) == 2
    assert list((tmp_path / "logs").glob("fsdbg_*.log"))
    for handler in app.logger.handlers:
        handler.close()


def test_handlers_are_not_duplicated(app):
    FsdbgApp()
    assert len(logging.getLogger("fsdbg").handlers) == 1


def test_inspect(app, initramfs):
    result = app.inspect(initramfs)
    assert result.format == ArchiveFormat.CPIO_GZIP
    assert result.stats.total == 5
    assert result.file_size == initramfs.stat().st_size
    assert [e.path for e in result.top_level] == ["bin", "init"]
    assert result.volume_id is None


def test_inspect_filter(app, initramfs):
    result = app.inspect(initramfs, pattern="usr/*")
    assert [e.path for e in result.entries] == ["usr/bin", "usr/bin/sh"]


def test_verify_accepts_alias(app, initramfs):
    report = app.verify(initramfs, "auth")
    assert report.name == ChecklistType.AUTH_AUDIT.display_name
    assert report.has_critical_failures()


def test_unknown_checklist(app, initramfs):
    with pytest.raises(InvalidArgumentError) as exc_info:
        app.verify(initramfs, "qcow2")
    assert exc_info.value.code == ErrorCode.INVALID_ARGUMENT


def test_iso_checklist_needs_iso(app, initramfs):
    with pytest.raises(InvalidArgumentError, match="ISO 9660"):
        app.verify(initramfs, ChecklistType.ISO)


def test_check_symlinks(app, initramfs):
    checks = app.check_symlinks(initramfs)
    assert {c.entry.path: c.ok for c in checks} == {"bin": True, "init": False}


def test_diff(app, builder, write_archive, initramfs):
    # builder still holds the initramfs records
    builder.file("etc/hostname", b"box\n")
    other = write_archive(gzip.compress(builder.build()), "other.img")
    changes = {e.path: e.change for e in app.diff(initramfs, other)}
    assert changes["etc/hostname"] == ChangeKind.ADDED
    assert changes["etc/passwd"] == ChangeKind.UNCHANGED


def test_unsupported_archive(app, write_archive):
    path = write_archive(b"not an archive", "junk.img")
    with pytest.raises(UnsupportedFormatError):
        app.inspect(path)


def test_inspect_hashes_archive(app, initramfs):
    expected = hashlib.sha256(initramfs.read_bytes()).hexdigest()
    assert app.inspect(initramfs).sha256 == expected


def test_inspect_erofs_uuid(app, monkeypatch, tmp_path):
    image = tmp_path / "rootfs.erofs"
    data = bytearray(4096)
    data[EROFS_MAGIC_OFFSET:EROFS_MAGIC_OFFSET + 4] = EROFS_MAGIC
    image.write_bytes(bytes(data))

    def fake_run(tool, args, install_hint=""):
        if args[0] == "--ls":
            return "drwxr-xr-x 2 0 0 4096 Jan 1 00:00 /etc\n"
        return "Filesystem UUID: 1234-abcd\n"

    monkeypatch.setattr(erofs_reader, "run_tool", fake_run)
    result = app.inspect(image)
    assert result.format == ArchiveFormat.EROFS
    assert result.uuid == "1234-abcd"
    assert result.stats.directories == 1
