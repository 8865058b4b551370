"""Tests for writing unit plans into the output directory."""

import os

import pytest

from fstabgen.errors import UnitExistsError, UnitWriteError
from fstabgen.schema import DropIn, LinkDirective, LinkKind, UnitFile, UnitPlan
from fstabgen.writer import create_link, materialize, write_unit


def test_write_unit(dest):
    path = write_unit(dest, UnitFile(name="home.mount", content="[Mount]\n"))
    assert path == dest / "home.mount"
    assert path.read_text() == "[Mount]\n"


def test_existing_unit_is_not_overwritten(dest):
    (dest / "home.mount").write_text("old\n")
    with pytest.raises(UnitExistsError) as excinfo:
        write_unit(dest, UnitFile(name="home.mount", content="new\n"))
    assert isinstance(excinfo.value, FileExistsError)
    assert "already exists" in str(excinfo.value)
    assert (dest / "home.mount").read_text() == "old\n"


def test_missing_output_directory(tmp_path):
    with pytest.raises(UnitWriteError):
        write_unit(tmp_path / "nope", UnitFile(name="home.mount", content=""))


def test_create_link_to_generated_unit(dest):
    path = create_link(dest, LinkDirective(group="local-fs.target", kind=LinkKind.REQUIRES, name="home.mount"))
    assert path == dest / "local-fs.target.requires" / "home.mount"
    assert os.readlink(path) == str(dest / "home.mount")


def test_create_link_explicit_target(dest):
    link = LinkDirective(
        group="local-fs.target", kind=LinkKind.WANTS, name="systemd-fsck-root.service",
        target="/usr/lib/systemd/system/systemd-fsck-root.service",
    )
    path = create_link(dest, link)
    assert os.readlink(path) == "/usr/lib/systemd/system/systemd-fsck-root.service"


def test_duplicate_link_fails(dest):
    link = LinkDirective(group="swap.target", kind=LinkKind.WANTS, name="dev-sdb2.swap")
    create_link(dest, link)
    with pytest.raises(UnitWriteError):
        create_link(dest, link)


def test_materialize(dest):
    plan = UnitPlan(
        unit=UnitFile(name="srv.mount", content="m\n"),
        automount=UnitFile(name="srv.automount", content="a\n"),
        drop_ins=[DropIn(unit="dev-sda1.device", name="50-device-timeout.conf", content="t\n")],
        links=[LinkDirective(group="local-fs.target", kind=LinkKind.REQUIRES, name="srv.automount")],
    )
    assert materialize(dest, plan) == ["srv.mount", "srv.automount"]
    assert (dest / "dev-sda1.device.d/50-device-timeout.conf").read_text() == "t\n"
    assert (dest / "local-fs.target.requires/srv.automount").is_symlink()


def test_undecodable_bytes_written_back_raw(dest):
    path = write_unit(dest, UnitFile(name="mnt-caf\\xe9.mount", content="Where=/mnt/caf\udce9\n"))
    assert path.read_bytes() == b"Where=/mnt/caf\xe9\n"


def test_unencodable_content_is_a_write_error(dest):
    with pytest.raises(UnitWriteError):
        write_unit(dest, UnitFile(name="bad.mount", content="Where=/mnt/\ud800\n"))
    assert not (dest / "bad.mount").exists()
