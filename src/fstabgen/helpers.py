"""Collaborators shared by mount and swap synthesis: fsck dependencies and device timeouts."""

import logging
import re
from typing import List, NamedTuple, Optional, Tuple

from .context import GeneratorContext
from .options import filter_options
from .paths import is_device_path, path_equal
from .schema import LOCAL_FS_TARGET, SYSTEM_DATA_UNIT_PATH, LinkDirective, LinkKind
from .unit_name import unit_name_from_path, unit_name_from_path_instance

log = logging.getLogger(__name__)

FSCK_ROOT_SERVICE = "systemd-fsck-root.service"
DEVICE_TIMEOUT_OPTIONS = ("x-systemd.device-timeout", "comment=systemd.device-timeout")

_TIME_UNITS = {
    "": 1.0,
    "s": 1.0, "sec": 1.0, "second": 1.0, "seconds": 1.0,
    "ms": 1e-3, "msec": 1e-3,
    "us": 1e-6, "usec": 1e-6,
    "m": 60.0, "min": 60.0, "minute": 60.0, "minutes": 60.0,
    "h": 3600.0, "hr": 3600.0, "hour": 3600.0, "hours": 3600.0,
    "d": 86400.0, "day": 86400.0, "days": 86400.0,
    "w": 604800.0, "week": 604800.0, "weeks": 604800.0,
}
_TIME_TERM = re.compile(r"\s*(\d+(?:\.\d+)?)\s*([a-z]*)")


class FsckDependency(NamedTuple):
    unit_lines: List[str]
    links: List[LinkDirective]


class DeviceTimeout(NamedTuple):
    unit: str  # the .device unit the drop-in extends
    timeout: str


def fsck_dependency(what: str, where: str, fstype: str, ctx: GeneratorContext) -> FsckDependency:
    """Dependencies that make the mount wait for its file system check."""
    none = FsckDependency([], [])

    if not is_device_path(what):
        log.warning('Checking was requested for "%s", but it is not a device.', what)
        return none

    if fstype and fstype != "auto" and not ctx.fsck_exists(fstype):
        log.debug("Checking was requested for %s, but fsck.%s does not exist.", what, fstype)
        return none

    if path_equal(where, "/"):
        return FsckDependency([], [LinkDirective(
            group=LOCAL_FS_TARGET,
            kind=LinkKind.WANTS,
            name=FSCK_ROOT_SERVICE,
            target=f"{SYSTEM_DATA_UNIT_PATH}/{FSCK_ROOT_SERVICE}",
        )])

    fsck = unit_name_from_path_instance("systemd-fsck", what, ".service")
    return FsckDependency([f"Requires={fsck}", f"After={fsck}"], [])


def parse_sec(text: str) -> float:
    """Parse a systemd time span ("90", "1min 30s", "infinity") into seconds."""
    t = text.strip().lower()
    if t == "infinity":
        return float("inf")
    if not t:
        raise ValueError("empty time span")
    total = 0.0
    pos = 0
    while pos < len(t):
        m = _TIME_TERM.match(t, pos)
        if not m or m.end() == pos:
            raise ValueError(f"invalid time span: {text!r}")
        unit = _TIME_UNITS.get(m.group(2))
        if unit is None:
            raise ValueError(f"unknown time unit {m.group(2)!r} in {text!r}")
        total += float(m.group(1)) * unit
        pos = m.end()
        while pos < len(t) and t[pos] == " ":
            pos += 1
    return total


def extract_device_timeout(what: str, where: str, options: str) -> Tuple[Optional[DeviceTimeout], str]:
    """Strip device timeout options; return the drop-in to write (if any) and the remaining options."""
    timeout, filtered = filter_options(options, DEVICE_TIMEOUT_OPTIONS)
    if timeout is None:
        return None, filtered

    try:
        parse_sec(timeout)
    except ValueError:
        log.warning("Failed to parse timeout for %s, ignoring: %s", where, timeout)
        return None, filtered

    if not is_device_path(what):
        log.warning("x-systemd.device-timeout ignored for %s", what)
        return None, filtered

    return DeviceTimeout(unit_name_from_path(what, ".device"), timeout), filtered
