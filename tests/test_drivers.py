"""Tests for the Unix and Windows build drivers."""

import pytest

from pyopus.build.cross import CrossTarget
from pyopus.build.drivers import UnixBuildDriver, WindowsBuildDriver, driver_for
from pyopus.build.errors import CompileFailed, ConfigureFailed, InstallFailed, ToolNotFound
from pyopus.build.layout import Paths

from .util import FakeRunner

UNIX_TOOLS = [("make", "--version"), ("autoreconf", "--version"), ("libtool", "--version")]


class TestUnixBuildDriver:
    def test_full_sequence(self, config, runner, log):
        layout = config.layout
        driver = UnixBuildDriver(config, runner, jobs=8, log=log)
        paths = driver.build()

        assert paths == Paths.default(layout)
        assert runner.argvs == [
            *UNIX_TOOLS,
            ("./autogen.sh",),
            (
                "./configure",
                f"--prefix={layout.prefix}",
                "--enable-static",
                "--disable-shared",
                "--disable-doc",
                "--disable-extra-programs",
                "--with-pic",
            ),
            ("make", "-j", "8"),
            ("make", "install"),
        ]
        # build steps run inside the source tree
        assert all(cwd == layout.source for _, cwd in runner.calls[3:])

    def test_jobs_default_to_cpu_count(self, config, runner, monkeypatch):
        monkeypatch.setattr("os.cpu_count", lambda: 3)
        driver = UnixBuildDriver(config, runner)
        assert driver.compile_command() == ["make", "-j", "3"]

    def test_cross_host_is_appended(self, config, runner):
        cross = CrossTarget("armv7-unknown-linux-gnueabihf", "arm-linux-gnueabihf", "x")
        driver = UnixBuildDriver(config, runner, cross=cross)
        args = driver.configure_args()
        assert args[1] == "--host=arm-linux-gnueabihf"
        assert "--enable-static" in args

    @pytest.mark.parametrize("tool", ["make", "autoreconf", "libtool"])
    def test_missing_tool_stops_before_configure(self, config, log, tool):
        runner = FakeRunner(missing={tool})
        with pytest.raises(ToolNotFound) as excinfo:
            UnixBuildDriver(config, runner, log=log).build()
        assert excinfo.value.tool == tool
        assert not runner.ran("./autogen.sh")
        assert not runner.ran("./configure")

    def test_configure_failure_carries_stderr(self, config, runner, log):
        runner.on("./configure", returncode=1, stderr="C compiler cannot create executables")
        with pytest.raises(ConfigureFailed, match="cannot create executables") as excinfo:
            UnixBuildDriver(config, runner, log=log).build()
        assert excinfo.value.returncode == 1
        assert not runner.ran("make", "-j")

    def test_bootstrap_failure_is_a_configure_failure(self, config, runner, log):
        runner.on("./autogen.sh", returncode=1, stderr="autoreconf: failed")
        with pytest.raises(ConfigureFailed):
            UnixBuildDriver(config, runner, log=log).build()
        assert not runner.ran("./configure")

    def test_compile_failure(self, config, runner, log):
        runner.on("make", "-j", returncode=2, stderr="error: celt.c")
        with pytest.raises(CompileFailed, match="celt.c"):
            UnixBuildDriver(config, runner, log=log).build()
        assert not runner.ran("make", "install")

    def test_install_failure(self, config, runner, log):
        runner.on("make", "install", returncode=2, stderr="Permission denied")
        with pytest.raises(InstallFailed, match="Permission denied"):
            UnixBuildDriver(config, runner, log=log).build()

    def test_launch_error_is_a_step_failure(self, config, log):
        runner = FakeRunner().on("./autogen.sh", effect=_raise_oserror)
        with pytest.raises(ConfigureFailed, match="No such file"):
            UnixBuildDriver(config, runner, log=log).build()


def _raise_oserror(argv, cwd):
    raise FileNotFoundError(f"No such file or directory: {argv[0]!r}")


class TestWindowsBuildDriver:
    def test_msvc_uses_nmake(self, make_config, runner, log):
        config = make_config(PYOPUS_HOST="x86_64-pc-windows-msvc")
        layout = config.layout
        WindowsBuildDriver(config, runner, log=log).build()
        assert runner.argvs == [
            ("nmake", "/?"),
            ("cmake", "--version"),
            (
                "cmake",
                "-G",
                "NMake Makefiles",
                "-DCMAKE_BUILD_TYPE=Release",
                f"-DCMAKE_INSTALL_PREFIX={layout.prefix}",
                "-DOPUS_STACK_PROTECTOR=OFF",
                ".",
            ),
            ("nmake",),
            ("nmake", "install"),
        ]

    def test_gnu_uses_make(self, make_config, runner, log):
        config = make_config(PYOPUS_HOST="x86_64-pc-windows-gnu")
        driver = WindowsBuildDriver(config, runner, log=log)
        driver.build()
        assert driver.generator == "Unix Makefiles"
        assert runner.argvs[0] == ("make", "--version")
        assert runner.argvs[-1] == ("make", "install")

    def test_missing_cmake(self, make_config, log):
        config = make_config(PYOPUS_HOST="x86_64-pc-windows-msvc")
        runner = FakeRunner(missing={"cmake"})
        with pytest.raises(ToolNotFound) as excinfo:
            WindowsBuildDriver(config, runner, log=log).build()
        assert excinfo.value.tool == "cmake"
        assert runner.argvs == [("nmake", "/?"), ("cmake", "--version")]


class TestDriverFor:
    def test_selected_by_build_platform(self, make_config):
        assert driver_for(make_config()) is UnixBuildDriver
        windows = make_config(PYOPUS_HOST="x86_64-pc-windows-msvc")
        assert driver_for(windows) is WindowsBuildDriver

    def test_markers(self):
        assert UnixBuildDriver.marker == "autogen.sh"
        assert WindowsBuildDriver.marker == "CMakeLists.txt"
