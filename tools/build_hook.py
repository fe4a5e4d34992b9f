"""Hatch build hook that acquires libopus and compiles the cffi extension."""

import shutil
import sys
from pathlib import Path

from hatchling.builders.hooks.plugin.interface import BuildHookInterface


class BuildHook(BuildHookInterface):
    """Build the libopus bindings and include the extension in the wheel."""

    PLUGIN_NAME = "pyopus_build_hook"

    def initialize(self, version: str, build_data: dict) -> None:
        """Run the libopus pipeline and stage the compiled extension."""
        super().initialize(version, build_data)
        if self.target_name != "wheel" or version == "editable":
            return

        if self.root not in sys.path:
            sys.path.insert(0, self.root)
        from pyopus.build import BuildConfig, BuildError, run

        config = BuildConfig.from_env(self.root, options=self.config)
        self.app.display_info(
            f"[opus] Building for {config.target} in {config.layout.output}"
        )

        def log(message: str) -> None:
            self.app.display_info(f"[opus] {message}")

        try:
            result = run(config, log=log)
        except BuildError as e:
            raise RuntimeError(f"libopus build failed:\n{e}") from e

        for line in result.acquisition.directives.render():
            self.app.display_debug(f"[opus] {line}")
        if not result.acquisition.directives.static:
            self.app.display_warning(
                f"[opus] Linking the {result.acquisition.strategy} libopus dynamically, "
                "the wheel will need it installed at runtime"
            )

        tmpdir = config.layout.output / "cffi"
        try:
            ext_path = Path(
                result.bindings.ffibuilder.compile(tmpdir=str(tmpdir), verbose=False)
            )
        except Exception as e:
            raise RuntimeError(f"Compiling the libopus extension failed: {e}") from e

        # Copy the extension into the package tree so it ships as package data
        dest_path = Path(self.root) / "pyopus" / ext_path.name
        shutil.copy2(ext_path, dest_path)
        self.app.display_info(f"[opus] Extension staged at: {dest_path}")

        build_data.setdefault("force_include", {})[str(dest_path)] = str(
            Path("pyopus") / ext_path.name
        )
        build_data["pure_python"] = False
        build_data["infer_tag"] = True
