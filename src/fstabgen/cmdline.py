"""Kernel command line scanning: root=, rootflags=, mount.usr=, fstab= and friends.

root=, rootfstype=, mount.usr= and mount.usrfstype= may occur more than
once; the last one wins. Repeated rootflags= and mount.usrflags= are
concatenated with ",".
"""

import logging
import os
from typing import Dict, Iterable, List, Optional

from .context import GeneratorContext
from .detect import parse_boolean
from .schema import CmdlineSettings, OverrideState

log = logging.getLogger(__name__)

_LAST_WINS = {
    "root": "root_what",
    "rootfstype": "root_fstype",
    "mount.usr": "usr_what",
    "mount.usrfstype": "usr_fstype",
}
_CONCATENATED = {
    "rootflags": "root_options",
    "mount.usrflags": "usr_options",
}


def split_cmdline(line: str) -> List[str]:
    """Split a boot parameter line into words.

    Double and single quotes group text containing spaces and are dropped.
    Backslashes are ordinary characters, and a quote left open runs to the
    end of the line, as the kernel reads it.
    """
    words: List[str] = []
    word: List[str] = []
    in_word = False
    quote = None
    for c in line:
        if quote is not None:
            if c == quote:
                quote = None
            else:
                word.append(c)
        elif c in "\"'":
            quote = c
            in_word = True
        elif c.isspace():
            if in_word:
                words.append("".join(word))
                word = []
                in_word = False
        else:
            word.append(c)
            in_word = True
    if in_word:
        words.append("".join(word))
    return words


def read_cmdline(ctx: GeneratorContext) -> List[str]:
    """Words of the boot parameter line for this run.

    $SYSTEMD_PROC_CMDLINE takes precedence. In a container the line of
    PID 1 is used, since /proc/cmdline belongs to the host.
    """
    override = os.environ.get("SYSTEMD_PROC_CMDLINE")
    if override is not None:
        return split_cmdline(override)
    if ctx.in_container:
        raw = ctx.host_path("/proc/1/cmdline").read_bytes()
        return [w for w in raw.decode("utf-8", errors="surrogateescape").split("\0") if w]
    text = ctx.host_path("/proc/cmdline").read_text(encoding="utf-8", errors="surrogateescape")
    return split_cmdline(text)


def parse_cmdline(words: Iterable[str], in_initrd: bool) -> CmdlineSettings:
    fstab_enabled = True
    fields: Dict[str, Optional[object]] = {}

    for word in words:
        # rd.* is meant for the initrd only
        if not in_initrd and word.startswith("rd."):
            continue
        key, sep, value = word.partition("=")
        if not sep:
            if key == "rw":
                fields["root_rw"] = True
            elif key == "ro":
                fields["root_rw"] = False
            continue

        if key in ("fstab", "rd.fstab"):
            try:
                fstab_enabled = parse_boolean(value)
            except ValueError:
                log.warning("Failed to parse fstab switch %s. Ignoring.", value)
        elif key in _LAST_WINS:
            fields[_LAST_WINS[key]] = value
        elif key in _CONCATENATED:
            attr = _CONCATENATED[key]
            previous = fields.get(attr)
            fields[attr] = f"{previous},{value}" if previous is not None else value

    return CmdlineSettings(fstab_enabled=fstab_enabled, overrides=OverrideState(**fields))


def load_cmdline(ctx: GeneratorContext) -> CmdlineSettings:
    """Read and parse the boot parameters. Failure to read them is not fatal."""
    try:
        words = read_cmdline(ctx)
    except (OSError, ValueError) as exc:
        log.warning("Failed to parse kernel command line, ignoring: %s", exc)
        return CmdlineSettings()
    return parse_cmdline(words, ctx.in_initrd)
