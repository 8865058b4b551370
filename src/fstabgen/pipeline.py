"""
Generator run: command line overrides first, then the mount tables.

A failing declaration never stops the run. Its error is logged and
recorded in the report and processing continues with the next one; the
report decides the exit status at the end.
"""

import logging
from typing import Callable, Optional

from jinja2 import Environment

from .classify import classify
from .cmdline import load_cmdline
from .context import GeneratorContext
from .errors import GeneratorError
from .fstab import INITRD_FSTAB, HOST_FSTAB, read_fstab
from .overrides import resolve_root, resolve_usr
from .schema import (
    ClassifiedEntry,
    CmdlineSettings,
    EntryResult,
    GenerationReport,
    MountEntry,
    Outcome,
    OverrideState,
)
from .synthesize import make_environment, synthesize
from .writer import materialize

log = logging.getLogger(__name__)


def _result(entry: MountEntry, outcome: Outcome, **kw) -> EntryResult:
    return EntryResult(source=entry.source, target=entry.target, origin=entry.origin, outcome=outcome, **kw)


def generate(
    classified: ClassifiedEntry,
    ctx: GeneratorContext,
    env: Environment,
    report: GenerationReport,
) -> bool:
    """Synthesize and write one entry. Returns False if it failed."""
    entry = classified.entry
    try:
        plan = synthesize(classified, ctx, env)
        units = materialize(ctx.dest, plan)
    except GeneratorError as exc:
        log.error("%s", exc)
        report.entries.append(_result(entry, Outcome.FAILED, message=str(exc)))
        return False
    report.entries.append(_result(entry, Outcome.WRITTEN, units=units))
    return True


def _run_override(
    stage: str,
    resolve: Callable[[OverrideState, GeneratorContext], Optional[ClassifiedEntry]],
    state: OverrideState,
    ctx: GeneratorContext,
    env: Environment,
    report: GenerationReport,
) -> bool:
    try:
        classified = resolve(state, ctx)
    except GeneratorError as exc:
        log.error("%s", exc)
        report.errors.append({"stage": stage, "message": str(exc)})
        return False
    if classified is None:
        return True
    return generate(classified, ctx, env, report)


def parse_table(ctx: GeneratorContext, initrd: bool, env: Environment, report: GenerationReport) -> bool:
    """Process every entry of one mount table. Returns False if anything failed."""
    ok = True
    stage = INITRD_FSTAB if initrd else HOST_FSTAB
    log.debug("Parsing %s", stage)
    try:
        for entry in read_fstab(ctx, initrd=initrd):
            try:
                classified = classify(entry, ctx, initrd_pass=initrd)
            except GeneratorError as exc:
                log.error("Failed to parse %s entry for %s: %s", stage, entry.target, exc)
                report.entries.append(_result(entry, Outcome.FAILED, message=str(exc)))
                ok = False
                continue
            if classified is None:
                report.entries.append(_result(entry, Outcome.SKIPPED))
                continue
            if not generate(classified, ctx, env, report):
                ok = False
    except GeneratorError as exc:
        log.error("%s", exc)
        report.errors.append({"stage": stage, "message": str(exc)})
        ok = False
    return ok


def run_all(
    ctx: GeneratorContext,
    settings: Optional[CmdlineSettings] = None,
    env: Optional[Environment] = None,
) -> GenerationReport:
    """Run the whole generator against ctx.dest and return the report."""
    if settings is None:
        settings = load_cmdline(ctx)
    if env is None:
        env = make_environment()
    report = GenerationReport()

    # root= and mount.usr= are always honoured in the initrd
    if ctx.in_initrd:
        if _run_override("root", resolve_root, settings.overrides, ctx, env, report):
            _run_override("mount.usr", resolve_usr, settings.overrides, ctx, env, report)

    if settings.fstab_enabled:
        parse_table(ctx, False, env, report)
        if ctx.in_initrd:
            parse_table(ctx, True, env, report)

    return report
