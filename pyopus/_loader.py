"""Loader for the compiled libopus cffi extension (API mode)."""

from typing import Any

__all__ = ["ffi", "lib"]


def _load_opus():
    try:
        from . import _opus_cffi
    except ImportError as e:
        raise OSError(
            f"Could not load the libopus extension: {e}. "
            "Build a wheel (or run tools/build_libopus.py --compile) first."
        ) from e
    return _opus_cffi.ffi, _opus_cffi.lib


_ffi, _lib = _load_opus()
ffi = _ffi
lib: Any = _lib
