"""Python bindings for libopus, built from the pinned upstream release."""

from .build.layout import VERSION

__all__ = ["LIBOPUS_VERSION", "version_string"]

LIBOPUS_VERSION = str(VERSION)


def version_string() -> str:
    """Return the version string reported by the linked libopus."""
    from ._loader import ffi, lib

    return ffi.string(lib.opus_get_version_string()).decode("ascii")
