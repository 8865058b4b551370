"""Unit synthesizer: ClassifiedEntry -> UnitPlan.

Pure planning; nothing touches the output directory here. Unit bodies are
rendered from the jinja2 templates shipped next to this module.
"""

from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .context import GeneratorContext
from .helpers import extract_device_timeout, fsck_dependency
from .schema import SWAP_TARGET, ClassifiedEntry, DropIn, LinkDirective, LinkKind, UnitFile, UnitPlan
from .unit_name import unit_name_from_path

GENERATOR_NAME = "fstabgen"
DEVICE_TIMEOUT_DROP_IN = "50-device-timeout.conf"


def make_environment() -> Environment:
    templates = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
        autoescape=False,
    )


def _link_kind(nofail: bool) -> LinkKind:
    return LinkKind.WANTS if nofail else LinkKind.REQUIRES


def _effective_options(options: Optional[str]) -> Optional[str]:
    # "defaults" is what an empty Options= means anyway
    if not options or options == "defaults":
        return None
    return options


def _effective_fstype(fstype: Optional[str]) -> Optional[str]:
    if not fstype or fstype == "auto":
        return None
    return fstype


def _timeout_drop_in(env: Environment, unit: str, timeout: str) -> DropIn:
    content = env.get_template("dropin.conf.j2").render(generator=GENERATOR_NAME, timeout=timeout)
    return DropIn(unit=unit, name=DEVICE_TIMEOUT_DROP_IN, content=content)


def synthesize_swap(c: ClassifiedEntry, env: Environment) -> UnitPlan:
    e = c.entry
    name = unit_name_from_path(e.source, ".swap")

    # Priority is passed twice, in Priority= and still inside Options=.
    content = env.get_template("swap.unit.j2").render(
        generator=GENERATOR_NAME,
        source_path=e.origin.source_path,
        what=e.source,
        priority=c.priority,
        options=_effective_options(e.options),
    )

    drop_ins: List[DropIn] = []
    # the device doubles as "where" so warnings name something useful
    timeout, _ = extract_device_timeout(e.source, e.source, e.options)
    if timeout is not None:
        drop_ins.append(_timeout_drop_in(env, timeout.unit, timeout.timeout))

    links: List[LinkDirective] = []
    if not c.noauto:
        links.append(LinkDirective(group=SWAP_TARGET, kind=_link_kind(c.nofail), name=name))

    return UnitPlan(unit=UnitFile(name=name, content=content), drop_ins=drop_ins, links=links)


def synthesize_mount(c: ClassifiedEntry, ctx: GeneratorContext, env: Environment) -> UnitPlan:
    e = c.entry
    post = c.ordering_target
    name = unit_name_from_path(e.target, ".mount")

    unit_lines: List[str] = []
    links: List[LinkDirective] = []
    if c.needs_fsck:
        fsck = fsck_dependency(e.source, e.target, e.fstype, ctx)
        unit_lines.extend(fsck.unit_lines)
        links.extend(fsck.links)

    timeout, filtered = extract_device_timeout(e.source, e.target, e.options)
    drop_ins: List[DropIn] = []
    if timeout is not None:
        drop_ins.append(_timeout_drop_in(env, timeout.unit, timeout.timeout))

    blocking = not c.noauto and not c.nofail and not c.automount
    content = env.get_template("mount.unit.j2").render(
        generator=GENERATOR_NAME,
        source_path=e.origin.source_path,
        before=post if post and blocking else None,
        unit_lines=unit_lines,
        what=e.source,
        where=e.target,
        fstype=_effective_fstype(e.fstype),
        options=_effective_options(filtered),
    )

    if post and not c.noauto and not c.automount:
        links.append(LinkDirective(group=post, kind=_link_kind(c.nofail), name=name))

    automount: Optional[UnitFile] = None
    if c.automount:
        automount_name = unit_name_from_path(e.target, ".automount")
        automount = UnitFile(
            name=automount_name,
            content=env.get_template("automount.unit.j2").render(
                generator=GENERATOR_NAME,
                source_path=e.origin.source_path,
                before=post,
                where=e.target,
            ),
        )
        if post:
            links.append(LinkDirective(group=post, kind=_link_kind(c.nofail), name=automount_name))

    return UnitPlan(
        unit=UnitFile(name=name, content=content),
        automount=automount,
        drop_ins=drop_ins,
        links=links,
    )


def synthesize(c: ClassifiedEntry, ctx: GeneratorContext, env: Optional[Environment] = None) -> UnitPlan:
    if env is None:
        env = make_environment()
    if c.is_swap:
        return synthesize_swap(c, env)
    return synthesize_mount(c, ctx, env)
