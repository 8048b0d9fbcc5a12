import gzip
import json
import stat

import pytest
from click.testing import CliRunner

from fsdbg.app import LOG_DIR_ENV, __version__
from fsdbg.ui import cli as cli_module
from fsdbg.ui.cli import EXIT_ERROR, EXIT_FAILED, EXIT_OK, cli


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.delenv(LOG_DIR_ENV, raising=False)
    # Wide enough that rich never wraps table cells
    monkeypatch.setattr(cli_module.console, "width", 240)
    monkeypatch.setattr(cli_module.err_console, "width", 240)
    return CliRunner()


def invoke(runner, *args):
    return runner.invoke(cli, list(map(str, args)), obj={})


@pytest.fixture
def good(builder, write_archive):
    builder.dir("usr/bin")
    builder.file("usr/bin/sh", b"\x7fELF", mode=0o755)
    builder.symlink("bin", "usr/bin")
    builder.file("etc/passwd", b"root:x:0:0::/root:/bin/sh\n")
    return write_archive(gzip.compress(builder.build()), "good.img")


@pytest.fixture
def broken_links(builder, write_archive):
    builder.symlink("init", "usr/lib/systemd/systemd")
    builder.symlink("a", "b")
    builder.symlink("b", "a")
    return write_archive(builder.build(), "broken.cpio")


def test_version(runner):
    result = invoke(runner, "version")
    assert result.exit_code == EXIT_OK
    assert __version__ in result.output


def test_checklists(runner):
    result = invoke(runner, "checklists")
    assert result.exit_code == EXIT_OK
    for name in ("install-initramfs", "live-initramfs", "rootfs", "auth-audit", "iso"):
        assert name in result.output


def test_inspect(runner, good):
    result = invoke(runner, "inspect", good)
    assert result.exit_code == EXIT_OK
    assert "CPIO (gzip compressed)" in result.output
    assert "/bin" in result.output


def test_inspect_verbose(runner, good):
    result = invoke(runner, "inspect", good, "--verbose")
    assert result.exit_code == EXIT_OK
    assert "/usr/bin/sh" in result.output
    assert "-rwxr-xr-x" in result.output


def test_inspect_missing_file(runner, tmp_path):
    result = invoke(runner, "inspect", tmp_path / "missing.img")
    assert result.exit_code == EXIT_ERROR
    assert "E001" in result.output


def test_inspect_unsupported(runner, write_archive):
    path = write_archive(b"070707" + b"0" * 200, "odc.cpio")
    result = invoke(runner, "inspect", path)
    assert result.exit_code == EXIT_ERROR
    assert "E009" in result.output


def test_inspect_corrupt(runner, builder, write_archive):
    path = write_archive(builder.file("a", b"x" * 64).build()[:150], "cut.cpio")
    result = invoke(runner, "inspect", path)
    assert result.exit_code == EXIT_ERROR
    assert "E002" in result.output


def test_inspect_corrupt_verbose_lists_partial_entries(runner, builder, write_archive):
    builder.file("etc/passwd", b"root\n").file("usr/bin/sh", b"\x7fELF", mode=0o755)
    path = write_archive(builder.build(trailer=False), "no-trailer.cpio")

    result = invoke(runner, "inspect", path, "--verbose")
    assert result.exit_code == EXIT_ERROR
    assert "E002" in result.output
    assert "Entries decoded before the damage" in result.output
    assert "/etc/passwd" in result.output
    assert "/usr/bin/sh" in result.output

    result = invoke(runner, "inspect", path, "--filter", "etc/*")
    assert "/etc/passwd" in result.output
    assert "/usr/bin/sh" not in result.output

    result = invoke(runner, "inspect", path)
    assert "Entries decoded before the damage" not in result.output
    assert "2 entries decoded" in result.output


def test_verify_failure_exit_code(runner, good):
    result = invoke(runner, "verify", good, "--type", "auth")
    assert result.exit_code == EXIT_FAILED
    assert "FAIL" in result.output
    assert "unix_chkpwd" in result.output


def test_verify_unknown_checklist(runner, good):
    result = invoke(runner, "verify", good, "--type", "qcow2")
    assert result.exit_code == EXIT_ERROR
    assert "E010" in result.output


def test_verify_iso_against_cpio(runner, good):
    result = invoke(runner, "verify", good, "-t", "iso")
    assert result.exit_code == EXIT_ERROR
    assert "E010" in result.output


def test_verify_passing_live_checklist(runner, builder, write_archive):
    from fsdbg.checklists import ChecklistType
    from fsdbg.core.checklist_engine import Predicate

    for req in ChecklistType.LIVE_INITRAMFS.requirements:
        if req.predicate == Predicate.DIRECTORY:
            builder.dir(req.path)
        elif req.predicate == Predicate.EXECUTABLE:
            builder.file(req.path, b"\x7fELF", mode=0o755)
        elif req.predicate == Predicate.SYMLINK_TARGET:
            builder.symlink(req.path, req.argument[0])
        elif req.predicate in (Predicate.EXISTS, Predicate.REGULAR):
            builder.file(req.path)
        elif req.predicate == Predicate.GLOB_COUNT_AT_LEAST:
            for i in range(req.argument):
                builder.file(req.path.replace("*", f"x{i}", 1).replace("*", ""))
    path = write_archive(builder.build(), "live.cpio")

    result = invoke(runner, "verify", path, "--type", "live", "--verbose")
    assert result.exit_code == EXIT_OK, result.output
    assert "PASS" in result.output


def test_check_symlinks_ok(runner, good):
    result = invoke(runner, "check-symlinks", good)
    assert result.exit_code == EXIT_OK
    assert "1 ok" in result.output


def test_check_symlinks_broken(runner, broken_links):
    result = invoke(runner, "check-symlinks", broken_links)
    assert result.exit_code == EXIT_FAILED
    assert "1 dangling" in result.output
    assert "2 cyclic" in result.output


def test_diff(runner, builder, write_archive):
    builder.file("etc/passwd", b"root\n", mode=0o644)
    old = write_archive(builder.build(), "old.cpio")
    builder.records.clear()
    builder.file("etc/passwd", b"root\n", mode=0o640)
    new = write_archive(builder.build(), "new.cpio")

    result = invoke(runner, "diff", old, new, "--only-diff")
    assert result.exit_code == EXIT_OK
    assert "mode: 0644 -> 0640" in result.output
    assert "1 modified" in result.output


def test_diff_identical(runner, good):
    result = invoke(runner, "diff", good, good)
    assert result.exit_code == EXIT_OK
    assert "identical" in result.output


def test_config_option(runner, good, tmp_path):
    config = tmp_path / "fsdbg.json"
    config.write_text(json.dumps({"inspect_top_level_only": False}))
    result = invoke(runner, "--config", config, "inspect", good)
    assert result.exit_code == EXIT_OK
    assert "/usr/bin/sh" in result.output


def test_device_entries_are_listed(runner, builder, write_archive):
    builder.add("dev/console", stat.S_IFCHR | 0o600, rdev=(5, 1))
    path = write_archive(builder.build(), "dev.cpio")
    result = invoke(runner, "inspect", path, "--filter", "dev/*")
    assert result.exit_code == EXIT_OK
    assert "crw-------" in result.output
