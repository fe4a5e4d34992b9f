"""Build-time support for pyopus: acquire libopus and generate cffi bindings."""

from .acquire import Acquisition, acquire
from .bindings import OPUS_ALLOWLIST, BindingRequest, SymbolAllowlist, generate_bindings
from .config import BuildConfig
from .errors import (
    ArtifactNotFound,
    BindingGenerationFailed,
    BuildError,
    CompileFailed,
    ConfigureFailed,
    FetchFailed,
    InstallFailed,
    MissingLinker,
    ToolNotFound,
)
from .layout import VERSION, BuildLayout, LinkDirectives, Paths
from .pipeline import BuildResult, run

__all__ = [
    "Acquisition",
    "ArtifactNotFound",
    "BindingGenerationFailed",
    "BindingRequest",
    "BuildConfig",
    "BuildError",
    "BuildLayout",
    "BuildResult",
    "CompileFailed",
    "ConfigureFailed",
    "FetchFailed",
    "InstallFailed",
    "LinkDirectives",
    "MissingLinker",
    "OPUS_ALLOWLIST",
    "Paths",
    "SymbolAllowlist",
    "ToolNotFound",
    "VERSION",
    "acquire",
    "generate_bindings",
    "run",
]
