"""
Tests for configuration loading and the run configuration.
"""

from pathlib import Path

import pytest

from dynamo_dump.config import ConfigError, ConfigLoader
from dynamo_dump.config.run_config import (
    DEFAULT_FILE_NAME,
    DEFAULT_PROGRESS_EVERY,
    Mode,
    RecordFormat,
    RunConfig,
)


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_missing_file_returns_empty(self, tmp_path):
        """Test that a missing config file yields an empty dict."""
        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.load() == {}

    def test_empty_file_returns_empty(self, tmp_path):
        """Test that an empty config file yields an empty dict."""
        (tmp_path / "config.yaml").write_text("")
        assert ConfigLoader(config_dir=tmp_path).load() == {}

    def test_load_values(self, tmp_path):
        """Test loading a populated config file."""
        (tmp_path / "config.yaml").write_text(
            "profile: staging\n"
            "region: eu-west-1\n"
            "record_format: document\n"
            "page_size: 500\n"
        )

        config = ConfigLoader(config_dir=tmp_path).load_and_validate()

        assert config == {
            "profile": "staging",
            "region": "eu-west-1",
            "record_format": "document",
            "page_size": 500,
        }

    def test_custom_file_name(self, tmp_path):
        """Test loading a differently named file."""
        (tmp_path / "prod.yaml").write_text("region: us-east-1\n")
        loader = ConfigLoader(config_dir=tmp_path, config_file="prod.yaml")
        assert loader.load() == {"region": "us-east-1"}

    def test_invalid_yaml(self, tmp_path):
        """Test that unparseable YAML raises ConfigError."""
        path = tmp_path / "config.yaml"
        path.write_text("profile: [unclosed\n")

        with pytest.raises(ConfigError, match="parse YAML"):
            ConfigLoader(config_dir=tmp_path).load_from_file(path)

    def test_non_mapping(self, tmp_path):
        """Test that a YAML list is refused."""
        (tmp_path / "config.yaml").write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="YAML dictionary"):
            ConfigLoader(config_dir=tmp_path).load()

    def test_validate_wrong_type(self, tmp_path):
        """Test that values of the wrong type are refused."""
        loader = ConfigLoader(config_dir=tmp_path)
        with pytest.raises(ConfigError, match="page_size"):
            loader.validate({"page_size": "lots"})

    def test_validate_bool_is_not_int(self, tmp_path):
        """Test that booleans are refused for integer settings."""
        loader = ConfigLoader(config_dir=tmp_path)
        with pytest.raises(ConfigError, match="got bool"):
            loader.validate({"progress_every": True})

    def test_validate_record_format(self, tmp_path):
        """Test that unknown record formats are refused."""
        loader = ConfigLoader(config_dir=tmp_path)
        with pytest.raises(ConfigError, match="record_format"):
            loader.validate({"record_format": "csv"})

    @pytest.mark.parametrize("key", ["page_size", "progress_every", "max_attempts"])
    def test_validate_positive(self, tmp_path, key):
        """Test that counts must be at least 1."""
        loader = ConfigLoader(config_dir=tmp_path)
        with pytest.raises(ConfigError, match=key):
            loader.validate({key: 0})

    def test_validate_log_retention(self, tmp_path):
        """Test that log retention cannot be negative."""
        loader = ConfigLoader(config_dir=tmp_path)
        with pytest.raises(ConfigError):
            loader.validate({"log_retention_count": -1})
        loader.validate({"log_retention_count": 0})

    def test_unknown_keys_ignored(self, tmp_path):
        """Test that unknown keys do not fail validation."""
        ConfigLoader(config_dir=tmp_path).validate({"colour": "blue"})


class TestRunConfig:
    """Tests for RunConfig."""

    def test_defaults(self):
        """Test default field values."""
        config = RunConfig(
            mode=Mode.BACKUP, table_name="Orders", file_path=Path("orders.json")
        )

        assert config.overwrite_existing is False
        assert config.record_format is RecordFormat.TYPED
        assert config.page_size is None
        assert config.progress_every == DEFAULT_PROGRESS_EVERY
        assert config.dry_run is False
        assert config.is_restore is False

    def test_frozen(self):
        """Test that a run configuration cannot change."""
        config = RunConfig(
            mode=Mode.BACKUP, table_name="Orders", file_path=Path("orders.json")
        )
        with pytest.raises(AttributeError):
            config.table_name = "Other"

    def test_empty_table_name(self):
        """Test that a table name is required."""
        with pytest.raises(ConfigError, match="table_name"):
            RunConfig(mode=Mode.BACKUP, table_name=" ", file_path=Path("x.json"))

    def test_invalid_page_size(self):
        """Test that the page size must be positive."""
        with pytest.raises(ConfigError, match="page_size"):
            RunConfig(
                mode=Mode.BACKUP,
                table_name="Orders",
                file_path=Path("x.json"),
                page_size=0,
            )

    def test_invalid_progress_every(self):
        """Test that the progress cadence must be positive."""
        with pytest.raises(ConfigError, match="progress_every"):
            RunConfig(
                mode=Mode.RESTORE,
                table_name="Orders",
                file_path=Path("x.json"),
                progress_every=0,
            )

    def test_mode_must_be_enum(self):
        """Test that raw strings are refused by the constructor."""
        with pytest.raises(ConfigError):
            RunConfig(mode="backup", table_name="Orders", file_path=Path("x.json"))

    def test_from_options_coerces_strings(self):
        """Test building a config from CLI-style values."""
        config = RunConfig.from_options(
            mode="RESTORE", table_name="Orders", record_format="Document"
        )

        assert config.mode is Mode.RESTORE
        assert config.record_format is RecordFormat.DOCUMENT
        assert config.is_restore is True

    def test_from_options_default_file(self):
        """Test the default file name."""
        config = RunConfig.from_options(mode=Mode.BACKUP, table_name="Orders")
        assert config.file_path == Path(DEFAULT_FILE_NAME)

    def test_from_options_invalid_format(self):
        """Test that unknown formats are refused with the valid choices."""
        with pytest.raises(ConfigError, match="typed, document"):
            RunConfig.from_options(
                mode="backup", table_name="Orders", record_format="csv"
            )
