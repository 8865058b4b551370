"""
Run context shared by all stages.

Everything a stage needs to know about the machine it runs on is carried
here, including the collaborators that touch real system state, so tests
can build a context with fakes instead.
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .detect import detect_container, in_initrd
from .devices import fstab_node_to_udev_node
from .executor import Executor, make_executor


def fsck_helper_exists(fstype: str) -> bool:
    """True if an fsck.<fstype> helper is on PATH."""
    return shutil.which(f"fsck.{fstype}") is not None


@dataclass
class GeneratorContext:
    dest: Path
    root: Path = Path("/")
    in_initrd: bool = False
    container: Optional[str] = None
    resolve_node: Callable[[str], str] = field(default=fstab_node_to_udev_node)
    fsck_exists: Callable[[str], bool] = field(default=fsck_helper_exists)

    @property
    def in_container(self) -> bool:
        return self.container is not None

    def host_path(self, path: str) -> Path:
        """Path of a host file under the inspected root."""
        return self.root / path.lstrip("/")


def make_context(
    dest: Path,
    root: Path = Path("/"),
    executor: Optional[Executor] = None,
) -> GeneratorContext:
    """Inspect the environment and build the context for a real run."""
    root = Path(root)
    if executor is None:
        executor = make_executor(str(root))
    return GeneratorContext(
        dest=Path(dest),
        root=root,
        in_initrd=in_initrd(root),
        container=detect_container(root, executor),
    )
