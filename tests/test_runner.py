"""
End-to-end tests of backup and restore runs against the in-memory store.
"""

import json
import logging
from pathlib import Path

import pytest
from conftest import make_items

from dynamo_dump.config.run_config import Mode, RecordFormat, RunConfig
from dynamo_dump.migration import ErrorKind, RunOutcome, run
from dynamo_dump.store import StoreError


def backup_config(path, **kwargs):
    return RunConfig(mode=Mode.BACKUP, table_name="Orders", file_path=path, **kwargs)


def restore_config(path, **kwargs):
    return RunConfig(mode=Mode.RESTORE, table_name="Orders", file_path=path, **kwargs)


class TestBackupRun:
    """Tests for backup runs."""

    def test_backup_orders(self, fake_store, orders, tmp_path):
        """Test backing up the Orders table."""
        store = fake_store({"Orders": orders})
        path = tmp_path / "orders.json"

        outcome = run(backup_config(path), store)

        assert outcome.succeeded
        assert outcome.records_transferred == 3
        assert outcome.table_name == "Orders"
        assert len(json.loads(path.read_text())) == 3

    def test_backup_missing_table(self, fake_store, tmp_path):
        """Test that a missing table fails and creates no file."""
        store = fake_store()
        path = tmp_path / "orders.json"

        outcome = run(backup_config(path), store)

        assert not outcome.succeeded
        assert outcome.error_kind is ErrorKind.TABLE_NOT_FOUND
        assert not path.exists()

    def test_existing_file_checked_before_store(self, fake_store, orders, tmp_path):
        """Test that DestinationExists is reported without describing."""
        store = fake_store({"Orders": orders})
        path = tmp_path / "orders.json"
        path.write_text("previous")

        outcome = run(backup_config(path), store)

        assert outcome.error_kind is ErrorKind.DESTINATION_EXISTS
        assert store.describe_calls == []
        assert store.scan_calls == []
        assert path.read_text() == "previous"

    def test_store_unreachable(self, fake_store, tmp_path):
        """Test that describe failures end the run as StoreUnreachable."""
        store = fake_store({"Orders": []})
        store.describe_error = StoreError("Unable to locate credentials")

        outcome = run(backup_config(tmp_path / "orders.json"), store)

        assert outcome.error_kind is ErrorKind.STORE_UNREACHABLE
        assert "Unable to locate credentials" in outcome.failure_reason

    def test_page_size_used(self, fake_store, tmp_path):
        """Test that the configured page size reaches the scan."""
        store = fake_store({"Orders": make_items(10)}, page_size=100)

        outcome = run(backup_config(tmp_path / "o.json", page_size=4), store)

        assert outcome.records_transferred == 10
        assert len(store.scan_calls) == 3


class TestRestoreRun:
    """Tests for restore runs."""

    def test_backup_then_restore(self, fake_store, orders, tmp_path):
        """Test that a backup restores into an empty table unchanged."""
        path = tmp_path / "orders.json"
        source = fake_store({"Orders": orders})
        assert run(backup_config(path), source).succeeded

        target = fake_store({"Orders": []})
        outcome = run(restore_config(path), target)

        assert outcome.succeeded
        assert outcome.records_transferred == 3
        assert target.tables["Orders"] == orders

    def test_restore_announced_once(self, fake_store, orders, tmp_path, caplog):
        """Test that a restore run logs its start message a single time."""
        path = tmp_path / "orders.json"
        run(backup_config(path), fake_store({"Orders": orders}))
        caplog.set_level(logging.INFO, logger="dynamo_dump")

        run(restore_config(path), fake_store({"Orders": []}))

        started = [r for r in caplog.records if "Restoring" in r.getMessage()]
        assert len(started) == 1
        assert "3 records into table Orders" in started[0].getMessage()
        assert str(path) in started[0].getMessage()

    def test_backup_then_restore_document_format(self, fake_store, orders, tmp_path):
        """Test the round trip using plain document records."""
        path = tmp_path / "orders.json"
        fmt = RecordFormat.DOCUMENT
        run(backup_config(path, record_format=fmt), fake_store({"Orders": orders}))

        target = fake_store({"Orders": []})
        outcome = run(restore_config(path, record_format=fmt), target)

        assert outcome.succeeded
        assert target.tables["Orders"] == orders

    def test_second_restore_refused(self, fake_store, orders, tmp_path):
        """Test that restoring twice fails with TableNotEmpty."""
        path = tmp_path / "orders.json"
        run(backup_config(path), fake_store({"Orders": orders}))
        target = fake_store({"Orders": []})
        assert run(restore_config(path), target).succeeded
        puts_after_first = len(target.put_calls)

        outcome = run(restore_config(path), target)

        assert not outcome.succeeded
        assert outcome.error_kind is ErrorKind.TABLE_NOT_EMPTY
        assert outcome.records_transferred == 0
        assert len(target.put_calls) == puts_after_first

    def test_invalid_source_checked_before_store(self, fake_store, tmp_path):
        """Test that SourceFileInvalid is reported without describing."""
        path = tmp_path / "orders.json"
        path.write_text("not json")
        store = fake_store({"Orders": []})

        outcome = run(restore_config(path), store)

        assert outcome.error_kind is ErrorKind.SOURCE_FILE_INVALID
        assert store.describe_calls == []

    def test_restore_missing_table(self, fake_store, tmp_path):
        """Test that a missing target table fails the restore."""
        path = tmp_path / "orders.json"
        path.write_text("[]")

        outcome = run(restore_config(path), fake_store())

        assert outcome.error_kind is ErrorKind.TABLE_NOT_FOUND

    def test_dry_run(self, fake_store, orders, tmp_path):
        """Test that a dry run writes nothing."""
        path = tmp_path / "orders.json"
        run(backup_config(path), fake_store({"Orders": orders}))
        target = fake_store({"Orders": []})

        outcome = run(restore_config(path, dry_run=True), target)

        assert outcome.succeeded
        assert target.put_calls == []

    def test_partial_restore(self, fake_store, tmp_path):
        """Test that a failed write keeps earlier records."""
        path = tmp_path / "orders.json"
        run(backup_config(path), fake_store({"Orders": make_items(5)}))
        target = fake_store({"Orders": []})
        target.fail_put_at = 3

        outcome = run(restore_config(path), target)

        assert outcome.error_kind is ErrorKind.RECORD_WRITE_FAILED
        assert outcome.records_transferred == 3
        assert len(target.tables["Orders"]) == 3


class TestRunOutcome:
    """Tests for RunOutcome."""

    def test_failure_requires_reason(self):
        """Test that failed outcomes must explain themselves."""
        with pytest.raises(ValueError):
            RunOutcome(succeeded=False)

    def test_success(self):
        """Test the success constructor."""
        outcome = RunOutcome.success(3, table_name="Orders", file_path=Path("x"))

        assert outcome.succeeded
        assert outcome.failure_reason is None
        assert outcome.error_kind is None

    def test_every_failure_has_reason_and_kind(self, fake_store, tmp_path):
        """Test that failed runs always carry a reason and a kind."""
        existing = tmp_path / "existing.json"
        existing.write_text("x")
        outcomes = [
            run(backup_config(tmp_path / "a.json"), fake_store()),
            run(backup_config(existing), fake_store()),
            run(restore_config(tmp_path / "missing.json"), fake_store()),
        ]

        for outcome in outcomes:
            assert not outcome.succeeded
            assert outcome.failure_reason
            assert outcome.error_kind is not None
