"""Failure taxonomy for the libopus acquisition pipeline.

Everything deriving from :class:`BuildError` aborts the build. :class:`ArtifactNotFound`
is different: it is how a probe says "not here", and the acquisition resolver
consumes it to fall through to the next strategy.
"""

from __future__ import annotations


class BuildError(RuntimeError):
    """Fatal pipeline failure."""


class ToolNotFound(BuildError):
    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(
            f"The `{tool}` not found, install or add to PATH and try again!"
        )


class FetchFailed(BuildError):
    pass


class MissingLinker(BuildError):
    pass


class BindingGenerationFailed(BuildError):
    pass


class StepFailed(BuildError):
    """A configure/compile/install command exited with a non-zero status."""

    step = "step"

    def __init__(self, argv, returncode: int | None, stderr: str = "", stdout: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        detail = stderr.strip() or stdout.strip()
        msg = f"{self.step} failed ({' '.join(self.argv)}): exit status {returncode}"
        if detail:
            msg += f"\n{detail}"
        super().__init__(msg)


class ConfigureFailed(StepFailed):
    step = "configure"


class CompileFailed(StepFailed):
    step = "make"


class InstallFailed(StepFailed):
    step = "make install"


class ArtifactNotFound(FileNotFoundError):
    """A probe found nothing usable; the next acquisition strategy runs."""
