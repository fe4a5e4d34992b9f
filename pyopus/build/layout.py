"""Pinned libopus version and the directory layout derived from it."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from packaging.version import Version

LIB_NAME = "opus"
VERSION = Version("1.3.1")
DEFAULT_GIT_URL = "https://github.com/xiph/opus"


def fetch_tag() -> str:
    return f"v{VERSION}"


@dataclass(frozen=True)
class BuildLayout:
    """Filesystem locations used by the pipeline, all relative to ``output``."""

    output: Path

    def __post_init__(self):
        # The install prefix ends up in configure/cmake arguments, which run
        # with the source tree as working directory, so keep everything absolute.
        object.__setattr__(self, "output", Path(self.output).absolute())

    @property
    def source(self) -> Path:
        return self.output / f"{LIB_NAME}-{VERSION}"

    @property
    def prefix(self) -> Path:
        return self.output / "dist"

    @property
    def include_dir(self) -> Path:
        return self.prefix / "include" / LIB_NAME

    @property
    def lib_dir(self) -> Path:
        return self.prefix / "lib"

    @property
    def wrapper_header(self) -> Path:
        return self.output / "wrapper.h"

    @property
    def cdef_path(self) -> Path:
        return self.output / f"{LIB_NAME}_cdef.h"

    @property
    def c_source_path(self) -> Path:
        return self.output / f"_{LIB_NAME}_cffi.c"


@dataclass(frozen=True)
class Paths:
    """Include and link directories of a ready-to-link libopus."""

    include_paths: tuple[Path, ...] = field(default_factory=tuple)
    link_paths: tuple[Path, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "include_paths", tuple(map(Path, self.include_paths)))
        object.__setattr__(self, "link_paths", tuple(map(Path, self.link_paths)))

    @classmethod
    def default(cls, layout: BuildLayout) -> "Paths":
        """Paths of a library installed into the local prefix."""
        return cls(include_paths=(layout.include_dir,), link_paths=(layout.lib_dir,))


@dataclass(frozen=True)
class LinkDirectives:
    """What the consumer has to pass to its linker.

    Emitted exactly once, by the binding step (cffi ``set_source`` arguments)
    or as text lines by :func:`render`.
    """

    search_paths: tuple[Path, ...] = ()
    libraries: tuple[str, ...] = ()
    static: bool = False

    def as_build_kwargs(self) -> dict:
        return {
            "library_dirs": [str(p) for p in self.search_paths],
            "libraries": list(self.libraries),
        }

    def render(self) -> list[str]:
        lines = [f"link-search=native={p}" for p in self.search_paths]
        kind = "static=" if self.static else ""
        lines += [f"link-lib={kind}{name}" for name in self.libraries]
        return lines

    @classmethod
    def for_prefix(cls, layout: BuildLayout) -> "LinkDirectives":
        return cls(search_paths=(layout.lib_dir,), libraries=(LIB_NAME,), static=True)
