import pytest

from fsdbg.core.symlink_resolver import (
    MAX_HOPS,
    Cycle,
    Dangling,
    Resolved,
    SymlinkResolver,
    check_all,
    link_destination,
    resolve,
)


@pytest.mark.parametrize("link,target,expected", [
    ("bin", "usr/bin", "usr/bin"),
    ("bin", "/usr/bin", "usr/bin"),
    ("usr/sbin/init", "../lib/systemd/systemd", "usr/lib/systemd/systemd"),
    ("etc/pam.d/password-auth", "system-auth", "etc/pam.d/system-auth"),
    ("escape", "../../../etc/passwd", "etc/passwd"),
])
def test_link_destination(link, target, expected):
    assert link_destination(link, target) == expected


def test_non_symlink_resolves_to_itself(fs):
    sh = fs.exe("usr/bin/sh")
    outcome = resolve(fs.index(sh), "/usr/bin/sh")
    assert outcome == Resolved("usr/bin/sh", sh, ("usr/bin/sh",))
    assert outcome.ok


def test_merged_usr_link(fs):
    index = fs.index(fs.dir("usr/bin"), fs.exe("usr/bin/sh"), fs.link("bin", "/usr/bin"))

    outcome = resolve(index, "bin")
    assert isinstance(outcome, Resolved)
    assert outcome.entry.is_dir

    through = resolve(index, "bin/sh")
    assert isinstance(through, Resolved)
    assert through.path == "usr/bin/sh"
    assert through.chain == ("bin/sh", "usr/bin/sh")


def test_dangling_chain(fs):
    index = fs.index(fs.link("a", "b"), fs.link("b", "c"))
    outcome = resolve(index, "a")
    assert outcome == Dangling("c", ("a", "b", "c"))
    assert not outcome.ok
    assert outcome.describe() == "dangling: /c does not exist"


def test_missing_path_is_dangling(fs):
    assert resolve(fs.index(), "nowhere") == Dangling("nowhere", ("nowhere",))


def test_empty_target_is_dangling(fs):
    outcome = resolve(fs.index(fs.link("broken", "")), "broken")
    assert isinstance(outcome, Dangling)
    assert outcome.path == "broken"


def test_two_link_cycle(fs):
    index = fs.index(fs.link("a", "b"), fs.link("b", "a"))
    outcome = resolve(index, "a")
    assert isinstance(outcome, Cycle)
    assert outcome.path == "a"
    assert outcome.chain == ("a", "b")


def test_self_link(fs):
    assert isinstance(resolve(fs.index(fs.link("loop", "loop")), "loop"), Cycle)


def test_directory_link_into_itself_terminates(fs):
    index = fs.index(fs.link("a", "a/b"))
    outcome = resolve(index, "a")
    assert isinstance(outcome, Cycle)
    assert len(outcome.chain) <= MAX_HOPS + 1


def chain_index(fs, links):
    """l0 -> l1 -> ... -> l<links>, where l<links> is a regular file"""
    entries = [fs.link(f"l{i}", f"l{i + 1}") for i in range(links)]
    entries.append(fs.file(f"l{links}"))
    return fs.index(*entries)


def test_hop_limit(fs):
    assert isinstance(resolve(chain_index(fs, MAX_HOPS), "l0"), Resolved)
    assert isinstance(resolve(chain_index(fs, MAX_HOPS + 1), "l0"), Cycle)


def test_custom_hop_limit(fs):
    assert SymlinkResolver(chain_index(fs, 3), max_hops=3).resolve("l0").ok
    assert isinstance(SymlinkResolver(chain_index(fs, 4), max_hops=3).resolve("l0"), Cycle)


def test_link_to_implicit_directory(fs):
    index = fs.index(
        fs.file("usr/lib/modules/6.1.0/modules.dep"),
        fs.link("lib", "usr/lib"),
    )
    outcome = resolve(index, "lib/modules")
    assert isinstance(outcome, Resolved)
    assert outcome.path == "usr/lib/modules"
    assert outcome.entry is None


def test_relative_link_through_parent(fs):
    index = fs.index(
        fs.exe("usr/lib/systemd/systemd"),
        fs.link("usr/sbin/init", "../lib/systemd/systemd"),
    )
    outcome = resolve(index, "/usr/sbin/init")
    assert outcome.path == "usr/lib/systemd/systemd"
    assert outcome.entry.is_executable


def test_check_all(fs):
    index = fs.index(
        fs.dir("usr/bin"),
        fs.link("bin", "usr/bin"),
        fs.link("init", "usr/lib/systemd/systemd"),
        fs.link("a", "b"),
        fs.link("b", "a"),
    )
    checks = check_all(index)

    assert [c.entry.path for c in checks] == ["bin", "init", "a", "b"]
    assert [c.ok for c in checks] == [True, False, False, False]
    assert checks[1].is_dangling
    assert checks[2].is_cycle and checks[3].is_cycle
