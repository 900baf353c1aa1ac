import pytest

from git_commit_agent.config.loader import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def isolate_user_config(tmp_path, monkeypatch):
    """Keep a developer's own configuration out of the tests.

    ``HOME`` points at an empty temporary directory, so the default
    configuration file never exists, and the override variable is unset.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    yield
