"""Synthetic /sysroot and /sysroot/usr mounts from root= and mount.usr=.

Only meaningful in the initrd. An unusable root= is skipped quietly, as
the root file system may be set up by other means; an explicit mount.usr=
that cannot be resolved is an error.
"""

import logging
from typing import Optional

from .classify import classify_mount
from .context import GeneratorContext
from .errors import UnresolvableDeviceError
from .options import has_option
from .paths import path_is_absolute
from .schema import INITRD_ROOT_FS_TARGET, ClassifiedEntry, MountEntry, Origin, OverrideState

log = logging.getLogger(__name__)

SYSROOT = "/sysroot"
SYSROOT_USR = "/sysroot/usr"


def root_mount_options(state: OverrideState) -> str:
    """Options for /sysroot: rootflags= plus the implied ro/rw."""
    rw = "rw" if state.root_rw else "ro"
    if state.root_options is None:
        return rw
    if state.root_rw is not None or (
        not has_option(state.root_options, "ro") and not has_option(state.root_options, "rw")
    ):
        return f"{state.root_options},{rw}"
    return state.root_options


def resolve_root(state: OverrideState, ctx: GeneratorContext) -> Optional[ClassifiedEntry]:
    if not state.root_what:
        log.debug("Could not find a root= entry on the kernel command line.")
        return None

    what = ctx.resolve_node(state.root_what)
    if not path_is_absolute(what):
        log.debug("Skipping entry what=%s where=%s type=%s", what, SYSROOT, state.root_fstype or "n/a")
        return None

    log.debug("Found entry what=%s where=%s type=%s", what, SYSROOT, state.root_fstype or "n/a")
    entry = MountEntry(
        source=what,
        target=SYSROOT,
        fstype=state.root_fstype or "",
        options=root_mount_options(state),
        passno=1,
        origin=Origin.KERNEL_CMDLINE_ROOT,
    )
    return classify_mount(entry, INITRD_ROOT_FS_TARGET)


def resolve_usr(state: OverrideState, ctx: GeneratorContext) -> Optional[ClassifiedEntry]:
    if not state.has_usr:
        return None

    state = state.with_usr_inherited()
    if state.usr_what is None or state.usr_options is None:
        return None

    what = ctx.resolve_node(state.usr_what)
    if not path_is_absolute(what):
        log.debug("Skipping entry what=%s where=%s type=%s", what, SYSROOT_USR, state.usr_fstype or "n/a")
        raise UnresolvableDeviceError(f"mount.usr={state.usr_what} does not resolve to a device node")

    log.debug("Found entry what=%s where=%s type=%s", what, SYSROOT_USR, state.usr_fstype or "n/a")
    entry = MountEntry(
        source=what,
        target=SYSROOT_USR,
        fstype=state.usr_fstype or "",
        options=state.usr_options,
        passno=1,
        origin=Origin.KERNEL_CMDLINE_USR,
    )
    return classify_mount(entry, INITRD_ROOT_FS_TARGET)
