"""Running external programs.

All processes spawned by the pipeline go through a :class:`CommandRunner` so
tests can substitute a fake that records the calls instead.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol, Sequence

from .errors import ToolNotFound


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    def run(
        self,
        argv: Sequence[str],
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run ``argv`` to completion. Raises OSError if it cannot be started."""
        ...


class SubprocessRunner:
    """Runs commands with :func:`subprocess.run`, capturing output as text."""

    def run(self, argv, cwd=None, env=None) -> CommandResult:
        proc = subprocess.run(
            [str(a) for a in argv],
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
            errors="replace",
        )
        return CommandResult(tuple(proc.args), proc.returncode, proc.stdout, proc.stderr)


@dataclass(frozen=True)
class ToolRequirement:
    """An executable that must respond to ``probe_args`` before ``step`` runs."""

    name: str
    probe_args: tuple[str, ...] = ("--version",)
    step: str = "build"


def check_prog(runner: CommandRunner, name: str, args: Sequence[str]) -> bool:
    """Return True if ``name args...`` runs and exits successfully."""
    try:
        return runner.run([name, *args]).ok
    except OSError:
        return False


def require_tools(runner: CommandRunner, requirements: Sequence[ToolRequirement]) -> None:
    """Raise :class:`ToolNotFound` for the first unavailable requirement."""
    for req in requirements:
        if not check_prog(runner, req.name, req.probe_args):
            raise ToolNotFound(req.name)
