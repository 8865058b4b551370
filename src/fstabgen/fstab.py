"""Mount table reader: fstab(5) lines to MountEntry values."""

import logging
import re
from typing import Iterator, List, NamedTuple, Optional

from .context import GeneratorContext
from .errors import FstabReadError
from .options import has_option
from .paths import is_device_path, is_path, path_equal, path_kill_slashes
from .schema import MountEntry, Origin

log = logging.getLogger(__name__)

HOST_FSTAB = "/etc/fstab"
INITRD_FSTAB = "/sysroot/etc/fstab"
SYSROOT = "/sysroot"

_OCTAL = re.compile(r"\\([0-3][0-7]{2})")


class FstabLine(NamedTuple):
    """One fstab row, fields decoded but otherwise untouched."""

    fsname: str
    mountpoint: str
    type: str
    opts: str
    freq: int
    passno: int


def _unescape_octals(s: str) -> str:
    return _OCTAL.sub(lambda m: chr(int(m.group(1), 8)), s)


def _int_field(parts: List[str], i: int) -> int:
    if len(parts) <= i:
        return 0
    try:
        return max(int(parts[i]), 0)
    except ValueError:
        return 0


def parse_fstab_line(line: str) -> Optional[FstabLine]:
    """Parse one line. Comments, blank lines and lines without a mount point give None."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None
    parts = stripped.split()
    if len(parts) < 2:
        log.debug("Ignoring fstab line without mount point: %s", stripped)
        return None
    return FstabLine(
        fsname=_unescape_octals(parts[0]),
        mountpoint=_unescape_octals(parts[1]),
        type=_unescape_octals(parts[2]) if len(parts) > 2 else "",
        opts=_unescape_octals(parts[3]) if len(parts) > 3 else "",
        freq=_int_field(parts, 4),
        passno=_int_field(parts, 5),
    )


def mount_in_initrd(mountpoint: str, opts: str) -> bool:
    """Entries the initrd has to mount before switching root."""
    return has_option(opts, "x-initrd.mount") or path_equal(mountpoint, "/usr")


def read_fstab(ctx: GeneratorContext, initrd: bool = False) -> Iterator[MountEntry]:
    """Yield the entries of the host fstab, or of /sysroot/etc/fstab when initrd.

    A missing table yields nothing. In initrd mode only entries the initrd
    needs are produced, with their mount points moved under /sysroot.
    Device entries are dropped when running in a container.
    """
    fstab_path = INITRD_FSTAB if initrd else HOST_FSTAB
    origin = Origin.INITRD_FSTAB if initrd else Origin.HOST_FSTAB
    path = ctx.host_path(fstab_path)
    try:
        text = path.read_text(encoding="utf-8", errors="surrogateescape")
    except FileNotFoundError:
        log.debug("%s does not exist", fstab_path)
        return
    except OSError as exc:
        raise FstabReadError(f"Failed to open {fstab_path}: {exc}") from exc

    for line in text.splitlines():
        me = parse_fstab_line(line)
        if me is None:
            continue

        if initrd and not mount_in_initrd(me.mountpoint, me.opts):
            continue

        what = ctx.resolve_node(me.fsname)

        if ctx.in_container and is_device_path(what):
            log.info("Running in a container, ignoring fstab device entry for %s.", what)
            continue

        where = f"{SYSROOT}/{me.mountpoint}" if initrd else me.mountpoint
        if is_path(where):
            where = path_kill_slashes(where)

        yield MountEntry(
            source=what,
            target=where,
            fstype=me.type,
            options=me.opts,
            passno=me.passno,
            origin=origin,
        )
