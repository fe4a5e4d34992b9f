"""Picking the ``--host`` triple for cross builds.

Toolchains are expected to follow the ``<triple>-gcc`` naming convention. When
the linker name contains the target triple it is used as is; otherwise the
linker name minus its last dash-separated part is taken as the triple. This
guesses wrong for toolchains named any other way.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath, PurePosixPath, PureWindowsPath

from .config import BuildConfig
from .errors import MissingLinker


@dataclass(frozen=True)
class CrossTarget:
    """A cross build. ``host`` is the autotools ``--host`` value, not the build machine."""

    target: str
    host: str
    linker: str


def _linker_filename(linker: str) -> str:
    path: PurePath = PureWindowsPath(linker) if "\\" in linker else PurePosixPath(linker)
    return path.name


def infer_host_triple(target: str, linker: str) -> str:
    """Return the configure ``--host`` value for ``target`` built with ``linker``."""
    name = _linker_filename(linker.strip())
    if target and target in name:
        return target
    prefix, sep, _ = name.rpartition("-")
    if not sep or not prefix:
        raise MissingLinker(
            f"Cannot infer a target triple from linker {linker!r}: "
            "expected a name like <triple>-gcc"
        )
    return prefix


def resolve_cross_target(config: BuildConfig) -> CrossTarget | None:
    """None for native builds; raises :class:`MissingLinker` without a linker."""
    if not config.cross_compiling:
        return None
    if not config.linker:
        raise MissingLinker(
            f"Missing linker for cross compile from {config.host} to {config.target}; "
            "set PYOPUS_LINKER"
        )
    return CrossTarget(
        target=config.target,
        host=infer_host_triple(config.target, config.linker),
        linker=config.linker,
    )
