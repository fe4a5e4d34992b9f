"""Deciding where libopus comes from.

Strategies are tried in order and the first one that does not raise
:class:`ArtifactNotFound` wins:

1. ``system``: pkg-config knows an installed libopus; use its paths.
2. ``prebuilt``: a previous build left the static archive in our prefix.
3. ``source``: fetch the pinned tag and build it with the platform driver.

Only the last one has side effects.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Callable, Sequence

from ..util import Echo, echo
from .config import BuildConfig
from .cross import resolve_cross_target
from .drivers import driver_for
from .errors import ArtifactNotFound, BuildError
from .fetch import fetch
from .layout import LIB_NAME, LinkDirectives, Paths
from .runner import CommandRunner, SubprocessRunner


@dataclass(frozen=True)
class Acquisition:
    strategy: str
    paths: Paths
    directives: LinkDirectives


Strategy = Callable[[BuildConfig, CommandRunner, Echo], Acquisition]


def _pkg_config(config: BuildConfig, runner: CommandRunner, *args: str) -> str:
    try:
        result = runner.run([config.pkg_config, *args, LIB_NAME])
    except OSError as e:
        raise ArtifactNotFound(f"{config.pkg_config} unavailable: {e}") from e
    if not result.ok:
        raise ArtifactNotFound(
            f"{config.pkg_config} {' '.join(args)} {LIB_NAME}: {result.stderr.strip()}"
        )
    return result.stdout


def _strip_flag(output: str, flag: str) -> list[str]:
    return [
        tok[len(flag) :]
        for tok in shlex.split(output)
        if tok.startswith(flag) and len(tok) > len(flag)
    ]


def probe_system(config: BuildConfig, runner: CommandRunner, log: Echo = echo) -> Acquisition:
    if not config.use_pkg_config:
        raise ArtifactNotFound("pkg-config probe disabled")
    _pkg_config(config, runner, "--exists")
    include_paths = _strip_flag(_pkg_config(config, runner, "--cflags-only-I"), "-I")
    link_paths = _strip_flag(_pkg_config(config, runner, "--libs-only-L"), "-L")
    paths = Paths(include_paths=include_paths, link_paths=link_paths)
    shown = ", ".join(include_paths) or "default"
    log(f"Using system libopus from pkg-config (include: {shown})")
    return Acquisition(
        "system",
        paths,
        LinkDirectives(search_paths=paths.link_paths, libraries=(LIB_NAME,)),
    )


def prebuilt_filename(config: BuildConfig) -> str:
    """Name of the installed static archive for this build."""
    if config.platform == "windows" and not config.is_target_env_gnu:
        return f"{LIB_NAME}.lib"
    return f"lib{LIB_NAME}.a"


def probe_prebuilt(config: BuildConfig, runner: CommandRunner, log: Echo = echo) -> Acquisition:
    layout = config.layout
    artifact = layout.lib_dir / prebuilt_filename(config)
    if not artifact.is_file():
        raise ArtifactNotFound(str(artifact))
    log(f"Reusing previously built {artifact}")
    return Acquisition("prebuilt", Paths.default(layout), LinkDirectives.for_prefix(layout))


def build_from_source(config: BuildConfig, runner: CommandRunner, log: Echo = echo) -> Acquisition:
    layout = config.layout
    driver_cls = driver_for(config)
    cross = resolve_cross_target(config) if driver_cls.takes_cross_host else None
    layout.output.mkdir(parents=True, exist_ok=True)
    fetch(runner, layout, config.git_url, driver_cls.marker, log=log)
    driver = driver_cls(config, runner, cross=cross, log=log)
    paths = driver.build()
    return Acquisition("source", paths, LinkDirectives.for_prefix(layout))


STRATEGIES: tuple[Strategy, ...] = (probe_system, probe_prebuilt, build_from_source)


def acquire(
    config: BuildConfig,
    runner: CommandRunner | None = None,
    *,
    log: Echo = echo,
    strategies: Sequence[Strategy] = STRATEGIES,
) -> Acquisition:
    """Return the first successful acquisition."""
    runner = runner or SubprocessRunner()
    misses = []
    for strategy in strategies:
        try:
            return strategy(config, runner, log)
        except ArtifactNotFound as e:
            misses.append(f"{strategy.__name__}: {e}")
    raise BuildError("no acquisition strategy succeeded; " + "; ".join(misses))
