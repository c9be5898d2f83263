"""
dynamo_dump.config - Configuration management module

Contains configuration loading, validation, and the per-run configuration.
"""

from dynamo_dump.config.loader import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    ConfigLoader,
)
from dynamo_dump.config.run_config import (
    DEFAULT_FILE_NAME,
    DEFAULT_PROGRESS_EVERY,
    Mode,
    RecordFormat,
    RunConfig,
)

__all__ = [
    "ConfigError",
    "ConfigLoader",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_FILE_NAME",
    "DEFAULT_PROGRESS_EVERY",
    "Mode",
    "RecordFormat",
    "RunConfig",
]
