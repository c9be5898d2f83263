"""Tests for configuration directory resolution."""

from pathlib import Path

from dynamo_dump.utils.paths import (
    CONFIG_DIR_ENV_VAR,
    DEFAULT_CONFIG_DIR,
    resolve_config_dir,
)


class TestResolveConfigDir:
    """Test resolve_config_dir function."""

    def test_default_lives_in_home(self):
        """Default config dir is ~/.dynamo-dump."""
        assert DEFAULT_CONFIG_DIR == Path.home() / ".dynamo-dump"

    def test_explicit_path(self, tmp_path):
        """An explicit path wins."""
        assert resolve_config_dir(str(tmp_path)) == tmp_path.resolve()

    def test_explicit_path_expands_tilde(self):
        """A leading ~ is expanded."""
        assert resolve_config_dir("~/dumps") == Path.home() / "dumps"

    def test_env_var(self, tmp_path, monkeypatch):
        """The environment variable is used when no path is given."""
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(tmp_path))
        assert resolve_config_dir() == tmp_path.resolve()

    def test_explicit_beats_env_var(self, tmp_path, monkeypatch):
        """An explicit path overrides the environment variable."""
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(tmp_path / "env"))
        assert resolve_config_dir(tmp_path / "cli") == (tmp_path / "cli").resolve()

    def test_default(self, monkeypatch):
        """The default is used when nothing else is set."""
        monkeypatch.delenv(CONFIG_DIR_ENV_VAR, raising=False)
        assert resolve_config_dir() == DEFAULT_CONFIG_DIR.resolve()

    def test_relative_path_made_absolute(self, tmp_path, monkeypatch):
        """Relative paths resolve against the working directory."""
        monkeypatch.chdir(tmp_path)
        result = resolve_config_dir("relative-dir")
        assert result.is_absolute()
        assert result == tmp_path.resolve() / "relative-dir"
