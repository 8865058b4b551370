"""Unit names derived from paths, escaped the way systemd-escape --path does."""

import string

from .paths import path_kill_slashes

_VALID = frozenset(string.ascii_letters + string.digits + ":_.")


def _escape_char(c: str) -> str:
    return "".join(f"\\x{b:02x}" for b in c.encode("utf-8", "surrogateescape"))


def escape_path(path: str) -> str:
    """Escape a path into the unit name alphabet.

    "/" alone becomes "-"; otherwise leading and trailing slashes are
    dropped, the rest become "-", and anything outside [A-Za-z0-9:_.] (or a
    leading ".") is written as \\xNN.
    """
    p = path_kill_slashes(path).strip("/")
    if not p:
        return "-"
    out = []
    for i, c in enumerate(p):
        if c == "/":
            out.append("-")
        elif c in _VALID and not (i == 0 and c == "."):
            out.append(c)
        else:
            out.append(_escape_char(c))
    return "".join(out)


def unit_name_from_path(path: str, suffix: str) -> str:
    """/home + .mount -> home.mount"""
    return escape_path(path) + suffix


def unit_name_from_path_instance(prefix: str, path: str, suffix: str) -> str:
    """systemd-fsck + /dev/sda1 + .service -> systemd-fsck@dev-sda1.service"""
    return f"{prefix}@{escape_path(path)}{suffix}"
