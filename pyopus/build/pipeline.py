"""End-to-end run: acquire libopus, then generate its bindings."""

from __future__ import annotations

from dataclasses import dataclass

from ..util import Echo, echo
from .acquire import Acquisition, acquire
from .bindings import Bindings, generate_bindings
from .config import BuildConfig
from .runner import CommandRunner, SubprocessRunner


@dataclass
class BuildResult:
    acquisition: Acquisition
    bindings: Bindings


def run(
    config: BuildConfig,
    runner: CommandRunner | None = None,
    *,
    log: Echo = echo,
) -> BuildResult:
    runner = runner or SubprocessRunner()
    acquisition = acquire(config, runner, log=log)
    log(f"libopus acquired via {acquisition.strategy}")
    bindings = generate_bindings(config, acquisition, runner, log=log)
    return BuildResult(acquisition, bindings)
