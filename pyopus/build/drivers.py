"""Configure, compile and install libopus from its source tree.

Two drivers share one sequence (tool check, configure, compile, install):
:class:`UnixBuildDriver` uses autotools and make, :class:`WindowsBuildDriver`
uses cmake with make or nmake. Each step must exit with status 0, otherwise the
build stops with the step's error. Nothing is retried.
"""

from __future__ import annotations

import os
from typing import Sequence

from ..util import Echo, echo
from .config import BuildConfig
from .cross import CrossTarget
from .errors import CompileFailed, ConfigureFailed, InstallFailed, StepFailed
from .layout import Paths
from .runner import CommandRunner, ToolRequirement, require_tools


class PlatformBuildDriver:
    """Base class for the per-platform build sequence."""

    platform: str = ""
    # Whether configure takes a --host triple when cross compiling
    takes_cross_host = False
    # File that shows a fetched source tree is usable by this driver
    marker: str = ""

    def __init__(
        self,
        config: BuildConfig,
        runner: CommandRunner,
        *,
        cross: CrossTarget | None = None,
        jobs: int | None = None,
        log: Echo = echo,
    ):
        self.config = config
        self.layout = config.layout
        self.runner = runner
        self.cross = cross
        self.jobs = jobs or os.cpu_count() or 1
        self.log = log

    def tool_requirements(self) -> list[ToolRequirement]:
        raise NotImplementedError

    def configure_commands(self) -> list[list[str]]:
        raise NotImplementedError

    def compile_command(self) -> list[str]:
        raise NotImplementedError

    def install_command(self) -> list[str]:
        raise NotImplementedError

    def build(self) -> Paths:
        """Run the whole sequence and return the installed paths."""
        require_tools(self.runner, self.tool_requirements())
        for argv in self.configure_commands():
            self._step(argv, ConfigureFailed)
        self._step(self.compile_command(), CompileFailed)
        self._step(self.install_command(), InstallFailed)
        self.log(f"Installed libopus into {self.layout.prefix}")
        return Paths.default(self.layout)

    def _step(self, argv: Sequence[str], error: type[StepFailed]) -> None:
        self.log(f">>> {' '.join(argv)}")
        try:
            result = self.runner.run(argv, cwd=self.layout.source)
        except OSError as e:
            raise error(argv, None, stderr=str(e)) from e
        if not result.ok:
            raise error(argv, result.returncode, result.stderr, result.stdout)


class UnixBuildDriver(PlatformBuildDriver):
    platform = "unix"
    marker = "autogen.sh"
    takes_cross_host = True

    def tool_requirements(self):
        return [
            ToolRequirement("make", ("--version",), "compile"),
            ToolRequirement("autoreconf", ("--version",), "configure"),
            ToolRequirement("libtool", ("--version",), "configure"),
        ]

    def configure_args(self) -> list[str]:
        args = [f"--prefix={self.layout.prefix}"]
        if self.cross is not None:
            args.append(f"--host={self.cross.host}")
        args += [
            # static only
            "--enable-static",
            "--disable-shared",
            # no docs or extra programs
            "--disable-doc",
            "--disable-extra-programs",
            "--with-pic",
        ]
        return args

    def configure_commands(self):
        return [["./autogen.sh"], ["./configure", *self.configure_args()]]

    def compile_command(self):
        return ["make", "-j", str(self.jobs)]

    def install_command(self):
        return ["make", "install"]


class WindowsBuildDriver(PlatformBuildDriver):
    platform = "windows"
    marker = "CMakeLists.txt"

    @property
    def make_prog(self) -> tuple[str, tuple[str, ...]]:
        if self.config.is_target_env_gnu:
            return "make", ("--version",)
        return "nmake", ("/?",)

    @property
    def generator(self) -> str:
        return "Unix Makefiles" if self.config.is_target_env_gnu else "NMake Makefiles"

    def tool_requirements(self):
        name, probe = self.make_prog
        return [
            ToolRequirement(name, probe, "compile"),
            ToolRequirement("cmake", ("--version",), "configure"),
        ]

    def configure_commands(self):
        return [
            [
                "cmake",
                "-G",
                self.generator,
                "-DCMAKE_BUILD_TYPE=Release",
                f"-DCMAKE_INSTALL_PREFIX={self.layout.prefix}",
                "-DOPUS_STACK_PROTECTOR=OFF",
                ".",
            ]
        ]

    def compile_command(self):
        return [self.make_prog[0]]

    def install_command(self):
        return [self.make_prog[0], "install"]


DRIVERS: dict[str, type[PlatformBuildDriver]] = {
    UnixBuildDriver.platform: UnixBuildDriver,
    WindowsBuildDriver.platform: WindowsBuildDriver,
}


def driver_for(config: BuildConfig) -> type[PlatformBuildDriver]:
    return DRIVERS[config.platform]
