"""
Helper programs for environment checks.

Detection asks the live system through an ``Executor`` rather than calling
subprocess itself, so a run against another ``--root`` never consults the
machine it happens to run on.
"""

import subprocess
from typing import List, NamedTuple, Optional, Protocol

COMMAND_TIMEOUT = 10


class RunResult(NamedTuple):
    returncode: int
    stdout: str = ""
    stderr: str = ""


class Executor(Protocol):
    def __call__(self, cmd: List[str]) -> RunResult:
        ...


def run_command(cmd: List[str]) -> RunResult:
    """Run cmd and capture its output. A missing or hung program is a failed check."""
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=COMMAND_TIMEOUT)
    except subprocess.TimeoutExpired:
        return RunResult(-1, stderr=f"{cmd[0]} timed out after {COMMAND_TIMEOUT}s")
    except OSError as exc:
        return RunResult(127, stderr=str(exc))
    return RunResult(proc.returncode, proc.stdout or "", proc.stderr or "")


def make_executor(root: str) -> Optional[Executor]:
    """The command runner for root, or None unless root is the live system."""
    if root not in ("/", ""):
        return None
    return run_command
