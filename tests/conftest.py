"""Pytest fixtures for pyopus build pipeline tests."""

import pytest

from pyopus.build.config import BuildConfig

from .util import HOST, FakeRunner


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def messages():
    return []


@pytest.fixture
def log(messages):
    return messages.append


@pytest.fixture
def make_config(tmp_path):
    """Build a config rooted at tmp_path from an explicit environment."""

    def make(**env):
        environ = {"PYOPUS_OUT_DIR": str(tmp_path / "out"), "PYOPUS_HOST": HOST}
        environ.update(env)
        return BuildConfig.from_env(tmp_path, environ=environ)

    return make


@pytest.fixture
def config(make_config):
    return make_config()
