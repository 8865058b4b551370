"""Path predicates used when deciding whether a mount point is ours to handle."""

import re

# Kernel API file systems that systemd mounts itself.
API_MOUNT_POINTS = (
    "/sys",
    "/proc",
    "/dev",
    "/sys/kernel/security",
    "/sys/fs/smackfs",
    "/dev/shm",
    "/dev/pts",
    "/run",
    "/sys/fs/cgroup",
    "/sys/fs/cgroup/systemd",
    "/sys/fs/pstore",
    "/sys/firmware/efi/efivars",
)

# Mounted by other software (SELinux, container managers); never ours.
IGNORED_MOUNT_POINTS = (
    "/sys/fs/selinux",
    "/selinux",
    "/proc/sys",
    "/dev/console",
    "/proc/kmsg",
)

NETWORK_FSTYPES = frozenset({
    "afs",
    "ceph",
    "cifs",
    "smb3",
    "smbfs",
    "sshfs",
    "ncpfs",
    "ncp",
    "nfs",
    "nfs4",
    "gfs",
    "gfs2",
    "glusterfs",
    "pvfs2",
    "ocfs2",
    "lustre",
    "davfs",
})

_SLASHES = re.compile(r"/+")


def is_path(p: str) -> bool:
    return "/" in p


def path_is_absolute(p: str) -> bool:
    return p.startswith("/")


def path_kill_slashes(p: str) -> str:
    """Collapse repeated slashes and drop a trailing one (but keep "/")."""
    p = _SLASHES.sub("/", p)
    if len(p) > 1 and p.endswith("/"):
        p = p.rstrip("/") or "/"
    return p


def path_equal(a: str, b: str) -> bool:
    return path_kill_slashes(a) == path_kill_slashes(b)


def is_device_path(p: str) -> bool:
    return p.startswith("/dev/") or p.startswith("/sys/")


def mount_point_is_api(p: str) -> bool:
    if any(path_equal(p, m) for m in API_MOUNT_POINTS):
        return True
    return path_kill_slashes(p).startswith("/sys/fs/cgroup/")


def mount_point_ignore(p: str) -> bool:
    return any(path_equal(p, m) for m in IGNORED_MOUNT_POINTS)


def fstype_is_network(fstype: str) -> bool:
    if not fstype:
        return False
    if fstype.startswith("fuse."):
        fstype = fstype[len("fuse."):]
    return fstype in NETWORK_FSTYPES
