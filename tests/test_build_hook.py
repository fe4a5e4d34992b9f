"""Tests for the hatch build hook, with the pipeline replaced by a stub."""

import importlib.util
import sys
from pathlib import Path

import pytest

pytest.importorskip("hatchling.builders.hooks.plugin.interface")

from pyopus.build import BuildError  # noqa: E402
from pyopus.build.acquire import Acquisition  # noqa: E402
from pyopus.build.bindings import Bindings  # noqa: E402
from pyopus.build.layout import LinkDirectives, Paths  # noqa: E402
from pyopus.build.pipeline import BuildResult  # noqa: E402

from .util import HOST  # noqa: E402

HOOK_PATH = Path(__file__).resolve().parent.parent / "tools" / "build_hook.py"
EXT_NAME = "_opus_cffi.abi3.so"


def load_hook_class():
    spec = importlib.util.spec_from_file_location("pyopus_build_hook", HOOK_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.BuildHook


class RecordingApp:
    def __init__(self):
        self.messages = []

    def display_info(self, message):
        self.messages.append(("info", message))

    def display_debug(self, message):
        self.messages.append(("debug", message))

    def display_warning(self, message):
        self.messages.append(("warning", message))

    def of(self, level):
        return [message for kind, message in self.messages if kind == level]


class FakeFFIBuilder:
    def __init__(self, output):
        self.output = output
        self.tmpdirs = []

    def compile(self, tmpdir, verbose=False):
        self.tmpdirs.append(tmpdir)
        path = self.output / EXT_NAME
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\x7fELF")
        return str(path)


@pytest.fixture
def hook_env(tmp_path, monkeypatch):
    (tmp_path / "pyopus").mkdir()
    # the hook puts the project root on sys.path
    monkeypatch.setattr(sys, "path", list(sys.path))
    app = RecordingApp()
    options = {"path": "tools/build_hook.py", "out_dir": str(tmp_path / "out"), "host": HOST}

    def make(target_name="wheel"):
        hook_class = load_hook_class()
        directory = str(tmp_path / "dist")
        return hook_class(str(tmp_path), options, None, None, directory, target_name, app)

    return make, app


def stub_pipeline(monkeypatch, tmp_path, strategy, directives):
    builder = FakeFFIBuilder(tmp_path / "out" / "cffi")
    calls = []

    def fake_run(config, runner=None, *, log):
        calls.append(config)
        log(f"libopus acquired via {strategy}")
        acquisition = Acquisition(strategy, Paths(), directives)
        bindings = Bindings(builder, "", tmp_path / "cdef.h", tmp_path / "src.c")
        return BuildResult(acquisition, bindings)

    monkeypatch.setattr("pyopus.build.run", fake_run)
    return calls


class TestBuildHook:
    def test_stages_extension_for_wheel(self, tmp_path, monkeypatch, hook_env):
        make, app = hook_env
        directives = LinkDirectives((tmp_path / "lib",), ("opus",), static=True)
        calls = stub_pipeline(monkeypatch, tmp_path, "prebuilt", directives)
        build_data = {}

        make().initialize("standard", build_data)

        staged = tmp_path / "pyopus" / EXT_NAME
        assert staged.exists()
        assert build_data["force_include"] == {str(staged): str(Path("pyopus") / EXT_NAME)}
        assert build_data["pure_python"] is False
        assert build_data["infer_tag"] is True
        assert calls[0].layout.output == tmp_path / "out"
        assert "[opus] libopus acquired via prebuilt" in app.of("info")
        assert "[opus] link-lib=static=opus" in app.of("debug")
        assert app.of("warning") == []

    def test_dynamic_system_library_warns(self, tmp_path, monkeypatch, hook_env):
        make, app = hook_env
        stub_pipeline(monkeypatch, tmp_path, "system", LinkDirectives((), ("opus",), False))

        make().initialize("standard", {})

        [warning] = app.of("warning")
        assert "system libopus dynamically" in warning

    def test_skips_editable_and_sdist(self, tmp_path, monkeypatch, hook_env):
        make, app = hook_env
        calls = stub_pipeline(monkeypatch, tmp_path, "prebuilt", LinkDirectives())
        build_data = {}

        make().initialize("editable", build_data)
        make("sdist").initialize("standard", build_data)

        assert calls == []
        assert build_data == {}
        assert app.messages == []

    def test_pipeline_failure_is_reported(self, tmp_path, monkeypatch, hook_env):
        make, _ = hook_env

        def failing_run(config, runner=None, *, log):
            raise BuildError("every strategy missed")

        monkeypatch.setattr("pyopus.build.run", failing_run)
        with pytest.raises(RuntimeError, match="libopus build failed:\nevery strategy missed"):
            make().initialize("standard", {})
