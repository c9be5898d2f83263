"""
Entry point for running dynamo_dump as a module.

Usage:
    python -m dynamo_dump --help
    python -m dynamo_dump backup --table Orders --file orders.json
    python -m dynamo_dump restore --table Orders --file orders.json
"""

from dynamo_dump.cli import cli

if __name__ == "__main__":
    cli()
