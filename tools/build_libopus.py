#!/usr/bin/env python3
"""Acquire libopus and generate its cffi bindings outside of a wheel build.

Prints the link directives (one per line) on stdout; progress goes to stderr.
"""

import argparse
import shutil
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pyopus.build import BuildConfig, BuildError, run  # noqa: E402


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Build libopus and its cffi bindings")
    parser.add_argument("--out-dir", default=None, help="Output root (default: $PYOPUS_OUT_DIR or build/libopus)")
    parser.add_argument("--target", default=None, help="Target triple (default: $PYOPUS_TARGET or host)")
    parser.add_argument("--host", default=None, help="Host triple (default: detected)")
    parser.add_argument("--linker", default=None, help="Cross linker, required when target != host")
    parser.add_argument("--git-url", default=None, help="libopus repository (default: $OPUS_GIT_URL)")
    parser.add_argument("--no-pkg-config", action="store_true", help="Skip the system pkg-config probe")
    parser.add_argument("--compile", action="store_true", help="Also compile the extension into pyopus/")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    root = Path(__file__).resolve().parent.parent
    options = {
        key: value
        for key, value in {
            "out_dir": args.out_dir,
            "target": args.target,
            "host": args.host,
            "linker": args.linker,
            "git_url": args.git_url,
        }.items()
        if value is not None
    }
    if args.no_pkg_config:
        options["pkg_config_probe"] = False
    config = BuildConfig.from_env(root, options=options)

    try:
        result = run(config)
    except BuildError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for line in result.acquisition.directives.render():
        print(line)

    if args.compile:
        try:
            ext_path = result.bindings.ffibuilder.compile(
                tmpdir=str(config.layout.output / "cffi"), verbose=True
            )
        except Exception as e:
            print(f"error: compiling the extension failed: {e}", file=sys.stderr)
            return 1
        dest = root / "pyopus" / Path(ext_path).name
        shutil.copy2(ext_path, dest)
        print(f"Extension staged at: {dest}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
