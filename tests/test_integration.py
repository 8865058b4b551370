"""
End-to-end generator runs: fixture host trees -> pipeline -> output directory.

Collaborators that look at the real machine are replaced through the
context (every fsck helper "exists"); everything else runs for real.
"""

import os
from pathlib import Path

import pytest

from fstabgen.cmdline import parse_cmdline
from fstabgen.context import GeneratorContext
from fstabgen.pipeline import run_all
from fstabgen.schema import CmdlineSettings, Outcome


def _ctx(root: Path, dest: Path, **kw) -> GeneratorContext:
    kw.setdefault("fsck_exists", lambda fstype: True)
    return GeneratorContext(dest=dest, root=root, **kw)


def _lines(path: Path):
    return path.read_text().splitlines()


def _link(dest: Path, group_dir: str, name: str) -> Path:
    return dest / group_dir / name


def test_scenario_local_mount(host_root, dest, write_fstab):
    write_fstab("/dev/sda1 /home ext4 defaults 0 2\n")
    report = run_all(_ctx(host_root, dest), CmdlineSettings())
    assert report.ok
    assert report.written_units == ["home.mount"]

    lines = _lines(dest / "home.mount")
    assert not any(l.startswith("Options=") for l in lines)
    assert "Requires=systemd-fsck@dev-sda1.service" in lines
    assert "After=systemd-fsck@dev-sda1.service" in lines
    link = _link(dest, "local-fs.target.requires", "home.mount")
    assert link.is_symlink()
    assert os.readlink(link) == str(dest / "home.mount")


def test_scenario_network_nofail(host_root, dest, write_fstab):
    write_fstab("//server/share /mnt/nfs cifs _netdev,nofail 0 0\n")
    report = run_all(_ctx(host_root, dest), CmdlineSettings())
    assert report.ok

    lines = _lines(dest / "mnt-nfs.mount")
    assert not any(l.startswith("Before=") for l in lines)
    assert not any("systemd-fsck" in l for l in lines)
    assert _link(dest, "remote-fs.target.wants", "mnt-nfs.mount").is_symlink()
    assert not (dest / "remote-fs.target.requires").exists()


def test_scenario_swap(host_root, dest, write_fstab):
    write_fstab("/dev/sdb2 none swap sw,pri=5 0 0\n")
    report = run_all(_ctx(host_root, dest), CmdlineSettings())
    assert report.ok

    lines = _lines(dest / "dev-sdb2.swap")
    assert "Priority=5" in lines
    assert "Options=sw,pri=5" in lines
    assert _link(dest, "swap.target.requires", "dev-sdb2.swap").is_symlink()


def test_scenario_cmdline_root(host_root, dest):
    settings = parse_cmdline(["root=/dev/sda1", "ro"], in_initrd=True)
    report = run_all(_ctx(host_root, dest, in_initrd=True), settings)
    assert report.ok
    assert report.written_units == ["sysroot.mount"]

    lines = _lines(dest / "sysroot.mount")
    assert "SourcePath=/proc/cmdline" in lines
    assert "Options=ro" in lines
    assert "What=/dev/sda1" in lines
    assert "Where=/sysroot" in lines
    assert "Before=initrd-root-fs.target" in lines
    assert "Requires=systemd-fsck@dev-sda1.service" in lines
    assert _link(dest, "initrd-root-fs.target.requires", "sysroot.mount").is_symlink()


def test_cmdline_root_ignored_outside_initrd(host_root, dest):
    settings = parse_cmdline(["root=/dev/sda1", "ro"], in_initrd=False)
    report = run_all(_ctx(host_root, dest), settings)
    assert report.ok
    assert not (dest / "sysroot.mount").exists()


def test_cmdline_usr_mount(host_root, dest):
    settings = parse_cmdline(["root=/dev/sda1", "mount.usr=/dev/sda2", "mount.usrflags=ro"], in_initrd=True)
    report = run_all(_ctx(host_root, dest, in_initrd=True), settings)
    assert report.ok
    assert report.written_units == ["sysroot.mount", "sysroot-usr.mount"]
    assert "What=/dev/sda2" in _lines(dest / "sysroot-usr.mount")


def test_unresolvable_usr_fails_run_but_tables_still_processed(host_root, dest, write_fstab):
    write_fstab("/dev/sda1 /home ext4 defaults 0 2\n")
    settings = parse_cmdline(["root=/dev/sda1", "mount.usr=usrdev", "mount.usrflags=ro"], in_initrd=True)
    report = run_all(_ctx(host_root, dest, in_initrd=True), settings)
    assert not report.ok
    assert [e["stage"] for e in report.errors] == ["mount.usr"]
    assert (dest / "home.mount").exists()


def test_unresolvable_root_is_soft(host_root, dest):
    settings = parse_cmdline(["root=nfs", "mount.usr=/dev/sda2", "mount.usrflags=ro"], in_initrd=True)
    report = run_all(_ctx(host_root, dest, in_initrd=True), settings)
    assert report.ok
    assert not (dest / "sysroot.mount").exists()
    assert (dest / "sysroot-usr.mount").exists()


def test_existing_unit_is_a_failure(host_root, dest, write_fstab):
    write_fstab("/dev/sda1 /home ext4 defaults 0 2\n")
    (dest / "home.mount").write_text("stale\n")
    report = run_all(_ctx(host_root, dest), CmdlineSettings())
    assert not report.ok
    assert report.entries[0].outcome == Outcome.FAILED
    assert "already exists" in report.entries[0].message
    assert (dest / "home.mount").read_text() == "stale\n"


def test_second_run_collides(host_root, dest, write_fstab):
    write_fstab("/dev/sda1 /home ext4 defaults 0 2\n")
    assert run_all(_ctx(host_root, dest), CmdlineSettings()).ok
    assert not run_all(_ctx(host_root, dest), CmdlineSettings()).ok


def test_duplicate_entries_reported(host_root, dest, write_fstab):
    write_fstab(
        "/dev/sda1 /home ext4 defaults 0 2\n"
        "/dev/sdb1 /home ext4 defaults 0 2\n"
    )
    report = run_all(_ctx(host_root, dest), CmdlineSettings())
    assert not report.ok
    assert [e.outcome for e in report.entries] == [Outcome.WRITTEN, Outcome.FAILED]
    assert "What=/dev/sda1" in _lines(dest / "home.mount")


def test_bad_entry_does_not_stop_the_rest(host_root, dest, write_fstab):
    write_fstab(
        "/dev/sdb2 none swap pri=fast 0 0\n"
        "/dev/sda1 /home ext4 defaults 0 2\n"
    )
    report = run_all(_ctx(host_root, dest), CmdlineSettings())
    assert not report.ok
    assert [e.outcome for e in report.entries] == [Outcome.FAILED, Outcome.WRITTEN]
    assert (dest / "home.mount").exists()
    assert not (dest / "dev-sdb2.swap").exists()


def test_undecodable_mount_point_does_not_stop_the_rest(host_root, dest):
    (host_root / "etc/fstab").write_bytes(
        b"/dev/sdd1 /mnt/caf\xe9 ext4 defaults 0 0\n"
        b"/dev/sda1 /home ext4 defaults 0 2\n"
    )
    report = run_all(_ctx(host_root, dest), CmdlineSettings())
    assert report.ok
    assert report.written_units == ["mnt-caf\\xe9.mount", "home.mount"]
    assert b"Where=/mnt/caf\xe9\n" in (dest / "mnt-caf\\xe9.mount").read_bytes()
    assert (dest / "home.mount").exists()


def test_container_suppression(host_root, dest, write_fstab):
    write_fstab(
        "/dev/sda1 /home ext4 defaults 0 2\n"
        "/swapfile none swap sw 0 0\n"
    )
    report = run_all(_ctx(host_root, dest, container="systemd-nspawn"), CmdlineSettings())
    assert report.ok
    assert report.written_units == []
    assert list(dest.iterdir()) == []


def test_fstab_disabled(host_root, dest, write_fstab):
    write_fstab("/dev/sda1 /home ext4 defaults 0 2\n")
    report = run_all(_ctx(host_root, dest), parse_cmdline(["fstab=0"], in_initrd=False))
    assert report.ok
    assert list(dest.iterdir()) == []


def test_full_host_fixture(fixtures, dest):
    report = run_all(_ctx(fixtures / "host", dest), CmdlineSettings())
    assert report.ok
    assert sorted(report.written_units) == sorted([
        "-.mount",
        "home.mount",
        "mnt-nfs.mount",
        "dev-sdb2.swap",
        "srv-data.mount",
        "srv-data.automount",
        "mnt-usb.mount",
        "tmp.mount",
        "mnt-My\\x20Disk.mount",
    ])
    skipped = [e.target for e in report.entries if e.outcome == Outcome.SKIPPED]
    assert skipped == ["/proc"]

    root = _lines(dest / "-.mount")
    assert "What=/dev/disk/by-uuid/0a1b2c3d-0000-4000-8000-000000000001" in root
    assert "Options=defaults,noatime" in root
    fsck_root = dest / "local-fs.target.wants" / "systemd-fsck-root.service"
    assert os.readlink(fsck_root) == "/usr/lib/systemd/system/systemd-fsck-root.service"

    assert _link(dest, "local-fs.target.requires", "-.mount").is_symlink()
    assert _link(dest, "remote-fs.target.requires", "srv-data.automount").is_symlink()
    assert not _link(dest, "remote-fs.target.requires", "srv-data.mount").exists()
    assert not any("mnt-usb" in p.name for p in (dest / "local-fs.target.requires").iterdir())
    assert "Options=mode=1777,nosuid" in _lines(dest / "tmp.mount")
    assert "Where=/mnt/My Disk" in _lines(dest / "mnt-My\\x20Disk.mount")


def test_initrd_fixture(fixtures, dest):
    settings = parse_cmdline(["root=LABEL=root", "rootfstype=xfs"], in_initrd=True)
    report = run_all(_ctx(fixtures / "initrd", dest, in_initrd=True), settings)
    assert report.ok
    assert report.written_units == ["sysroot.mount", "sysroot-usr.mount", "sysroot-data.mount"]

    root = _lines(dest / "sysroot.mount")
    assert "What=/dev/disk/by-label/root" in root
    assert "Type=xfs" in root
    assert "Options=ro" in root

    usr = _lines(dest / "sysroot-usr.mount")
    assert "SourcePath=/sysroot/etc/fstab" in usr
    assert "Before=initrd-fs.target" in usr
    assert "Options=ro" in usr
    assert _link(dest, "initrd-fs.target.requires", "sysroot-usr.mount").is_symlink()
    assert _link(dest, "initrd-fs.target.requires", "sysroot-data.mount").is_symlink()
    assert _link(dest, "initrd-root-fs.target.requires", "sysroot.mount").is_symlink()
