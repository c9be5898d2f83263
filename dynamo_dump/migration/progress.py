"""Fixed-cadence progress feed shared by the exporter and the importer."""

from __future__ import annotations

import logging

from dynamo_dump.config.run_config import DEFAULT_PROGRESS_EVERY
from dynamo_dump.utils.logging import get_logger


class ProgressReporter:
    """
    Counts transferred records and logs a message every ``every`` records.

    Attributes:
        action: Label used in messages ("backup" or "restore")
        every: Number of records between two messages
        total: Expected record count, if known (advisory)
        count: Records transferred so far

    Usage:
        progress = ProgressReporter("backup", every=100, total=1200)
        for record in records:
            ...
            progress.advance()
        progress.finish()
    """

    def __init__(
        self,
        action: str,
        every: int = DEFAULT_PROGRESS_EVERY,
        total: int | None = None,
        logger: logging.Logger | None = None,
    ):
        if every < 1:
            raise ValueError(f"every must be >= 1, got {every}")
        self.action = action
        self.every = every
        self.total = total
        self.count = 0
        self.logger = logger or get_logger(__name__)

    def advance(self, count: int = 1) -> None:
        for _ in range(count):
            self.count += 1
            if self.count % self.every == 0:
                self.logger.info(f"[{self.action}] {self._describe()}...")

    def finish(self) -> None:
        self.logger.info(f"[{self.action}] Done. Total records: {self.count:,}")

    def _describe(self) -> str:
        if self.total:
            return f"{self.count:,} of ~{self.total:,} records"
        return f"{self.count:,} records"
