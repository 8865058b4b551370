"""Materialize a UnitPlan in the generator output directory."""

import logging
import os
from pathlib import Path
from typing import List

from .errors import UnitExistsError, UnitWriteError
from .schema import DropIn, LinkDirective, UnitFile, UnitPlan

log = logging.getLogger(__name__)


def _mkdir_parents(path: Path) -> None:
    try:
        path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as exc:
        raise UnitWriteError(f"Failed to create directory {path.parent}: {exc.strerror}") from exc


def write_unit(dest: Path, unit: UnitFile) -> Path:
    """Create dest/<unit.name>; never replaces an existing file."""
    path = Path(dest) / unit.name
    kind = path.suffix.lstrip(".")
    try:
        with open(path, "x", encoding="utf-8", errors="surrogateescape") as f:
            f.write(unit.content)
    except FileExistsError as exc:
        raise UnitExistsError(
            f"Failed to create {kind} unit file {path}, as it already exists. Duplicate entry in /etc/fstab?",
        ) from exc
    except OSError as exc:
        raise UnitWriteError(f"Failed to write unit file {path}: {exc.strerror}") from exc
    except UnicodeError as exc:
        path.unlink()
        raise UnitWriteError(f"Failed to write unit file {path}: {exc}") from exc
    log.debug("Wrote %s", path)
    return path


def write_drop_in(dest: Path, drop_in: DropIn) -> Path:
    path = Path(dest) / f"{drop_in.unit}.d" / drop_in.name
    _mkdir_parents(path)
    try:
        path.write_text(drop_in.content, encoding="utf-8", errors="surrogateescape")
    except OSError as exc:
        raise UnitWriteError(f"Failed to write drop-in {path}: {exc.strerror}") from exc
    except UnicodeError as exc:
        raise UnitWriteError(f"Failed to write drop-in {path}: {exc}") from exc
    return path


def create_link(dest: Path, link: LinkDirective) -> Path:
    dest = Path(dest).absolute()
    path = dest / link.directory / link.name
    target = link.target or str(dest / link.name)
    _mkdir_parents(path)
    try:
        os.symlink(target, path)
    except OSError as exc:
        raise UnitWriteError(f"Failed to create symlink {path}: {exc.strerror}") from exc
    return path


def materialize(dest: Path, plan: UnitPlan) -> List[str]:
    """Write every file of the plan. Returns the names of the units created."""
    written: List[str] = []
    write_unit(dest, plan.unit)
    written.append(plan.unit.name)
    for drop_in in plan.drop_ins:
        write_drop_in(dest, drop_in)
    if plan.automount is not None:
        write_unit(dest, plan.automount)
        written.append(plan.automount.name)
    for link in plan.links:
        create_link(dest, link)
    return written
