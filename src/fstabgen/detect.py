"""Detection of the execution environment: initrd and container."""

import logging
import os
from pathlib import Path
from typing import Optional

from .executor import Executor

log = logging.getLogger(__name__)

_TRUE = ("1", "yes", "y", "true", "t", "on")
_FALSE = ("0", "no", "n", "false", "f", "off")


def parse_boolean(value: str) -> bool:
    """systemd boolean spelling. Raises ValueError for anything else."""
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _safe_read(p: Path) -> Optional[str]:
    try:
        return p.read_text(errors="replace")
    except (PermissionError, OSError):
        return None


def in_initrd(root: Path) -> bool:
    """True when running before the switch to the real root."""
    forced = os.environ.get("SYSTEMD_IN_INITRD")
    if forced:
        try:
            return parse_boolean(forced)
        except ValueError:
            log.warning("Failed to parse $SYSTEMD_IN_INITRD value %r, ignoring.", forced)
    return (Path(root) / "etc/initrd-release").exists()


def detect_container(root: Path, executor: Optional[Executor] = None) -> Optional[str]:
    """Return the container manager name, or None when not in a container."""
    root = Path(root)

    text = _safe_read(root / "run/systemd/container")
    if text and text.strip():
        return text.strip()

    environ = _safe_read(root / "proc/1/environ")
    if environ:
        for item in environ.split("\0"):
            if item.startswith("container=") and item[len("container="):]:
                return item[len("container="):]

    if executor is not None:
        r = executor(["systemd-detect-virt", "--container"])
        if r.returncode == 0 and r.stdout.strip() and r.stdout.strip() != "none":
            return r.stdout.strip()

    return None
