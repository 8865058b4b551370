"""
Generator data model.

Strongly typed contract between the stages: the table reader and the
command line resolver produce MountEntry values, the classifier turns them
into ClassifiedEntry values, the synthesizer turns those into a UnitPlan
and the writer materializes the plan. Models are frozen; each stage builds
a new value instead of editing the one it was handed.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


# --- Well-known unit names ---

LOCAL_FS_TARGET = "local-fs.target"
REMOTE_FS_TARGET = "remote-fs.target"
SWAP_TARGET = "swap.target"
INITRD_ROOT_FS_TARGET = "initrd-root-fs.target"
INITRD_FS_TARGET = "initrd-fs.target"

SYSTEM_DATA_UNIT_PATH = "/usr/lib/systemd/system"


# --- Entries ---


class Origin(str, Enum):
    HOST_FSTAB = "host-fstab"
    INITRD_FSTAB = "initrd-fstab"
    KERNEL_CMDLINE_ROOT = "kernel-cmdline-root"
    KERNEL_CMDLINE_USR = "kernel-cmdline-usr"

    @property
    def source_path(self) -> str:
        """Path recorded in SourcePath= of units generated from this origin."""
        if self is Origin.HOST_FSTAB:
            return "/etc/fstab"
        if self is Origin.INITRD_FSTAB:
            return "/sysroot/etc/fstab"
        return "/proc/cmdline"


class MountEntry(BaseModel):
    """One mount declaration, already resolved to a device node."""

    source: str
    target: str
    fstype: str = ""
    options: str = ""  # comma-joined, as written
    passno: int = Field(default=0, ge=0)
    origin: Origin = Origin.HOST_FSTAB

    model_config = {"frozen": True}

    @property
    def option_list(self) -> List[str]:
        return [o for o in self.options.split(",") if o]


class ClassifiedEntry(BaseModel):
    """MountEntry plus the decisions the classifier derived from it."""

    entry: MountEntry
    is_swap: bool = False
    noauto: bool = False
    nofail: bool = False
    automount: bool = False
    is_network: bool = False
    priority: Optional[int] = None  # swap only
    ordering_target: Optional[str] = None
    needs_fsck: bool = False

    model_config = {"frozen": True}


# --- Synthesis output ---


class LinkKind(str, Enum):
    WANTS = "wants"
    REQUIRES = "requires"


class UnitFile(BaseModel):
    """A unit file to create exclusively in the output directory."""

    name: str  # e.g. home.mount
    content: str

    model_config = {"frozen": True}


class DropIn(BaseModel):
    """A drop-in snippet, written to <unit>.d/<name>."""

    unit: str
    name: str
    content: str

    model_config = {"frozen": True}


class LinkDirective(BaseModel):
    """Symlink <group>.<kind>/<name> pointing at target.

    target is None when the link points at a unit generated into the
    output directory; the writer fills in its absolute path.
    """

    group: str
    kind: LinkKind
    name: str
    target: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def directory(self) -> str:
        return f"{self.group}.{self.kind.value}"


class UnitPlan(BaseModel):
    """Everything one classified entry turns into on disk."""

    unit: UnitFile
    automount: Optional[UnitFile] = None
    drop_ins: List[DropIn] = Field(default_factory=list)
    links: List[LinkDirective] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def units(self) -> List[UnitFile]:
        return [u for u in (self.unit, self.automount) if u is not None]


# --- Kernel command line ---


class OverrideState(BaseModel):
    """root=/mount.usr= derived fields collected from the boot parameter line."""

    root_what: Optional[str] = None
    root_fstype: Optional[str] = None
    root_options: Optional[str] = None
    root_rw: Optional[bool] = None  # None: neither rw nor ro given
    usr_what: Optional[str] = None
    usr_fstype: Optional[str] = None
    usr_options: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def has_usr(self) -> bool:
        return any(v is not None for v in (self.usr_what, self.usr_fstype, self.usr_options))

    def with_usr_inherited(self) -> "OverrideState":
        """Return a copy where unset usr_* fields take the matching root_* value."""
        return self.model_copy(update={
            "usr_what": self.usr_what if self.usr_what is not None else self.root_what,
            "usr_fstype": self.usr_fstype if self.usr_fstype is not None else self.root_fstype,
            "usr_options": self.usr_options if self.usr_options is not None else self.root_options,
        })


class CmdlineSettings(BaseModel):
    """Output of the boot parameter scan."""

    fstab_enabled: bool = True
    overrides: OverrideState = Field(default_factory=OverrideState)

    model_config = {"frozen": True}


# --- Report ---


class Outcome(str, Enum):
    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"


class EntryResult(BaseModel):
    """What happened to one declaration."""

    source: str
    target: str
    origin: Origin
    outcome: Outcome
    units: List[str] = Field(default_factory=list)
    message: str = ""


class GenerationReport(BaseModel):
    """Aggregated result of one generator run."""

    entries: List[EntryResult] = Field(default_factory=list)
    errors: List[dict] = Field(default_factory=list)  # {stage, message}

    model_config = {"extra": "forbid"}

    @property
    def ok(self) -> bool:
        return not self.errors and all(e.outcome != Outcome.FAILED for e in self.entries)

    @property
    def written_units(self) -> List[str]:
        return [u for e in self.entries for u in e.units]
