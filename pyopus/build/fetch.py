"""Fetching the pinned libopus source tree."""

from __future__ import annotations

from ..util import Echo, echo
from .errors import FetchFailed
from .layout import BuildLayout, fetch_tag
from .runner import CommandRunner


def fetch(
    runner: CommandRunner,
    layout: BuildLayout,
    url: str,
    marker: str,
    *,
    log: Echo = echo,
) -> bool:
    """Shallow-clone the pinned tag into ``layout.source``.

    Returns False without touching the network when ``marker`` already exists
    inside the source tree, True after a successful clone.
    """
    if (layout.source / marker).exists():
        return False

    argv = [
        "git",
        "clone",
        "--depth",
        "1",
        "-b",
        fetch_tag(),
        url,
        layout.source.name,
    ]
    log(f"Fetching {url} at {fetch_tag()} into {layout.source}")
    try:
        result = runner.run(argv, cwd=layout.output)
    except OSError as e:
        raise FetchFailed(f"fetch failed: could not run git: {e}") from e
    if not result.ok:
        detail = result.stderr.strip()
        raise FetchFailed(
            f"fetch failed: git exited with status {result.returncode}"
            + (f"\n{detail}" if detail else "")
        )
    return True
