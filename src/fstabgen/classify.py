"""Entry classifier: decide what kind of unit a mount declaration becomes.

Returns None for declarations that are skipped (not ours, not valid, or
suppressed in a container). Raises OptionParseError for a malformed swap
priority.
"""

import logging
from typing import Optional

from .context import GeneratorContext
from .fstab import mount_in_initrd
from .options import find_priority, has_option
from .paths import fstype_is_network, mount_point_ignore, mount_point_is_api, path_equal, path_is_absolute
from .schema import (
    INITRD_FS_TARGET,
    INITRD_ROOT_FS_TARGET,
    LOCAL_FS_TARGET,
    REMOTE_FS_TARGET,
    ClassifiedEntry,
    MountEntry,
)

log = logging.getLogger(__name__)

AUTOMOUNT_OPTIONS = ("x-systemd.automount", "comment=systemd.automount")


def mount_is_network(entry: MountEntry) -> bool:
    return has_option(entry.options, "_netdev") or fstype_is_network(entry.fstype)


def is_automount(entry: MountEntry) -> bool:
    return any(has_option(entry.options, o) for o in AUTOMOUNT_OPTIONS)


def ordering_target_for(entry: MountEntry, initrd_pass: bool) -> str:
    if initrd_pass:
        return INITRD_FS_TARGET
    if mount_in_initrd(entry.target, entry.options):
        return INITRD_ROOT_FS_TARGET
    if mount_is_network(entry):
        return REMOTE_FS_TARGET
    return LOCAL_FS_TARGET


def classify_swap(entry: MountEntry, ctx: GeneratorContext) -> Optional[ClassifiedEntry]:
    if ctx.in_container:
        log.info("Running in a container, ignoring fstab swap entry for %s.", entry.source)
        return None

    return ClassifiedEntry(
        entry=entry,
        is_swap=True,
        noauto=has_option(entry.options, "noauto"),
        nofail=has_option(entry.options, "nofail"),
        priority=find_priority(entry.options),
    )


def classify_mount(
    entry: MountEntry,
    ordering_target: Optional[str],
    noauto: bool = False,
    nofail: bool = False,
    automount: bool = False,
) -> Optional[ClassifiedEntry]:
    """Checks every mount goes through, whether from fstab or the command line."""
    if entry.fstype == "autofs":
        return None

    if not path_is_absolute(entry.target):
        log.warning("Mount point %s is not a valid absolute path, ignoring.", entry.target)
        return None

    if mount_point_is_api(entry.target) or mount_point_ignore(entry.target):
        return None

    if path_equal(entry.target, "/"):
        # The root file system is not optional.
        noauto = nofail = automount = False

    return ClassifiedEntry(
        entry=entry,
        noauto=noauto,
        nofail=nofail,
        automount=automount,
        is_network=mount_is_network(entry),
        ordering_target=ordering_target,
        needs_fsck=entry.passno != 0,
    )


def classify(entry: MountEntry, ctx: GeneratorContext, initrd_pass: bool = False) -> Optional[ClassifiedEntry]:
    noauto = has_option(entry.options, "noauto")
    nofail = has_option(entry.options, "nofail")
    log.debug(
        "Found entry what=%s where=%s type=%s nofail=%s noauto=%s",
        entry.source, entry.target, entry.fstype or "n/a",
        "yes" if nofail else "no", "yes" if noauto else "no",
    )

    if entry.fstype == "swap":
        return classify_swap(entry, ctx)

    return classify_mount(
        entry,
        ordering_target_for(entry, initrd_pass),
        noauto=noauto,
        nofail=nofail,
        automount=is_automount(entry),
    )
