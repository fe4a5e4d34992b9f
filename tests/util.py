"""Helpers shared by the pipeline tests."""

from pathlib import Path

from pyopus.build.runner import CommandResult

HOST = "x86_64-unknown-linux-gnu"


class FakeRunner:
    """CommandRunner that records commands instead of running them.

    Commands succeed with empty output unless a rule registered with ``on()``
    matches the start of the argv. Programs listed in ``missing`` raise
    FileNotFoundError like a missing executable would.
    """

    def __init__(self, missing=()):
        self.calls = []
        self.rules = []
        self.missing = set(missing)

    def on(self, *prefix, returncode=0, stdout="", stderr="", effect=None):
        self.rules.append((tuple(prefix), returncode, stdout, stderr, effect))
        return self

    def run(self, argv, cwd=None, env=None):
        argv = tuple(str(a) for a in argv)
        self.calls.append((argv, cwd))
        if argv[0] in self.missing:
            raise FileNotFoundError(argv[0])
        for prefix, returncode, stdout, stderr, effect in self.rules:
            if argv[: len(prefix)] == prefix:
                if effect is not None:
                    effect(argv, cwd)
                return CommandResult(argv, returncode, stdout, stderr)
        return CommandResult(argv, 0)

    @property
    def argvs(self):
        return [argv for argv, _ in self.calls]

    @property
    def programs(self):
        return [argv[0] for argv, _ in self.calls]

    def ran(self, *prefix):
        return any(argv[: len(prefix)] == prefix for argv in self.argvs)


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")
    return path
