"""Build configuration gathered from the environment and hook options."""

from __future__ import annotations

import os
import platform
import sys
import sysconfig
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .layout import DEFAULT_GIT_URL, BuildLayout

_ARCH_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "i386": "i686",
    "x86": "i686",
}

# hook option name -> environment variable
ENV_VARS = {
    "out_dir": "PYOPUS_OUT_DIR",
    "target": "PYOPUS_TARGET",
    "host": "PYOPUS_HOST",
    "linker": "PYOPUS_LINKER",
    "git_url": "OPUS_GIT_URL",
    "pkg_config": "PKG_CONFIG",
    "cc": "CC",
}


def detect_host_triple() -> str:
    """Describe the running interpreter's platform as a target triple."""
    machine = platform.machine().lower() or "unknown"
    arch = _ARCH_ALIASES.get(machine, machine)
    if sys.platform == "darwin":
        return f"{arch}-apple-darwin"
    if sys.platform == "win32":
        if sysconfig.get_platform().startswith("mingw"):
            return f"{arch}-pc-windows-gnu"
        return f"{arch}-pc-windows-msvc"
    if sys.platform.startswith("linux"):
        libc, _ = platform.libc_ver()
        return f"{arch}-unknown-linux-{'gnu' if libc == 'glibc' else 'musl'}"
    return f"{arch}-unknown-{sys.platform.rstrip('0123456789')}"


def target_env(triple: str) -> str:
    """The environment component of a triple: ``gnu``, ``musl``, ``msvc`` or ``""``."""
    last = triple.rsplit("-", 1)[-1]
    for env in ("gnu", "musl", "msvc"):
        if last.startswith(env):
            return env
    return ""


def is_windows(triple: str) -> bool:
    return "-windows" in triple


@dataclass(frozen=True)
class BuildConfig:
    layout: BuildLayout
    target: str
    host: str
    linker: str | None = None
    git_url: str = DEFAULT_GIT_URL
    use_pkg_config: bool = True
    pkg_config: str = "pkg-config"
    cc: str | None = None

    @property
    def cross_compiling(self) -> bool:
        return self.target != self.host

    @property
    def target_env(self) -> str:
        return target_env(self.target)

    @property
    def is_target_env_gnu(self) -> bool:
        return self.target_env == "gnu"

    @property
    def platform(self) -> str:
        """Which build driver applies: ``windows`` or ``unix``.

        Decided by the machine doing the build, not by the target.
        """
        return "windows" if is_windows(self.host) else "unix"

    @property
    def preprocessor(self) -> str:
        if self.cc:
            return self.cc
        if is_windows(self.target) and not self.is_target_env_gnu:
            return "cl"
        return "cc"

    @classmethod
    def from_env(
        cls,
        root: Path | str = ".",
        environ: Mapping[str, str] | None = None,
        options: Mapping[str, object] | None = None,
    ) -> "BuildConfig":
        """Create a config; ``options`` (hook settings) win over ``environ``."""
        environ = os.environ if environ is None else environ
        options = options or {}

        def get(key: str) -> str | None:
            value = options.get(key)
            if value is None:
                value = environ.get(ENV_VARS[key]) or None
            return None if value is None else str(value)

        out_dir = get("out_dir")
        output = Path(out_dir) if out_dir else Path(root) / "build" / "libopus"
        host = get("host") or detect_host_triple()
        target = get("target") or host
        linker = get("linker")
        if linker is None and target != host:
            linker = environ.get("CC") or None
        if "pkg_config_probe" in options:
            use_pkg_config = bool(options["pkg_config_probe"])
        else:
            use_pkg_config = not environ.get("OPUS_NO_PKG_CONFIG")
        return cls(
            layout=BuildLayout(output),
            target=target,
            host=host,
            linker=linker,
            git_url=get("git_url") or DEFAULT_GIT_URL,
            use_pkg_config=use_pkg_config,
            pkg_config=get("pkg_config") or "pkg-config",
            cc=get("cc"),
        )
