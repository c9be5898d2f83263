"""CLI package for dynamo_dump."""

from dynamo_dump.cli.formatters import show_outcome
from dynamo_dump.cli.main import DEFAULT_REGION, cli, prompt_mfa_code

__all__ = [
    "DEFAULT_REGION",
    "cli",
    "prompt_mfa_code",
    "show_outcome",
]
