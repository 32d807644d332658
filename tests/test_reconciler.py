"""Lifecycle reconciliation against a source snapshot."""

import uuid

import pytest

from ishimport.models.import_log import ImportLog
from ishimport.models.job import Job
from ishimport.services.reconciler import next_state, reconcile


def add_job(db, source_id, status="active", source="osonish"):
    job = Job(
        id=uuid.uuid4(),
        source=source,
        source_id=source_id,
        title_uz=f"Vakansiya {source_id}",
        is_imported=True,
        source_status=status,
        is_active=status == "active",
    )
    db.add(job)
    db.commit()
    return job


def state(db, source_id, source="osonish"):
    db.expire_all()
    return db.query(Job).filter(Job.source == source, Job.source_id == source_id).one()


@pytest.mark.parametrize("current,in_active,in_filled,expected", [
    ("active", True, False, ("active", "still_active")),
    ("active", False, False, ("removed_at_source", "removed_at_source")),
    ("removed_at_source", False, False, ("removed_at_source", "unchanged")),
    ("removed_at_source", True, False, ("active", "reactivated")),
    ("filled", True, False, ("active", "reactivated")),
    ("active", True, True, ("filled", "marked_filled")),
    ("filled", False, True, ("filled", "marked_filled")),
])
def test_next_state(current, in_active, in_filled, expected):
    active = {"1"} if in_active else set()
    filled = {"1"} if in_filled else set()
    assert next_state(current, "1", active, filled) == expected


def test_reactivation_scenario(db):
    add_job(db, "1", "active")
    add_job(db, "2", "removed_at_source")
    add_job(db, "3", "active")

    stats = reconcile(db, "osonish", {"1", "2"}, set())

    assert stats.total_checked == 3
    assert stats.still_active == 1
    assert stats.reactivated == 1
    assert stats.removed_at_source == 1
    assert stats.errors == 0

    assert state(db, "1").source_status == "active"
    job2 = state(db, "2")
    assert job2.source_status == "active"
    assert job2.is_active is True
    job3 = state(db, "3")
    assert job3.source_status == "removed_at_source"
    assert job3.is_active is False


def test_filled_takes_precedence_over_active(db):
    add_job(db, "7", "active")
    stats = reconcile(db, "osonish", ["7"], ["7"])
    assert stats.marked_filled == 1
    assert stats.still_active == 0
    job = state(db, "7")
    assert job.source_status == "filled"
    assert job.is_active is False


def test_timestamps_per_branch(db):
    add_job(db, "1", "active")
    add_job(db, "2", "active")

    reconcile(db, "osonish", ["1"])

    seen = state(db, "1")
    gone = state(db, "2")
    assert seen.last_seen_at is not None
    assert seen.last_checked_at == seen.last_synced_at == seen.last_seen_at
    assert gone.last_seen_at is None
    assert gone.last_checked_at == seen.last_checked_at
    assert gone.last_synced_at == seen.last_synced_at


def test_only_lifecycle_fields_change(db):
    job = add_job(db, "1", "active")
    job.salary_min = 1000
    db.commit()

    reconcile(db, "osonish", [])

    job = state(db, "1")
    assert job.title_uz == "Vakansiya 1"
    assert job.salary_min == 1000


def test_other_sources_and_null_ids_are_untouched(db):
    add_job(db, "1", "active", source="hh")
    add_job(db, None, "active")

    stats = reconcile(db, "osonish", [])

    assert stats.total_checked == 0
    assert state(db, "1", source="hh").source_status == "active"


def test_walks_every_page(db):
    for i in range(5):
        add_job(db, str(i), "active")

    stats = reconcile(db, "osonish", ["0", "1"], page_size=2)

    assert stats.total_checked == 5
    assert stats.still_active == 2
    assert stats.removed_at_source == 3


def test_second_run_counts_unchanged(db):
    add_job(db, "1", "active")
    reconcile(db, "osonish", [])
    stats = reconcile(db, "osonish", [])
    assert stats.removed_at_source == 0
    assert stats.unchanged == 1


def test_sync_log_is_written(db):
    add_job(db, "1", "active")
    stats = reconcile(db, "osonish", ["1"], triggered_by="cron")

    log = db.query(ImportLog).one()
    assert log.id == stats.log_id
    assert log.operation_type == "sync"
    assert log.status == "completed"
    assert log.triggered_by == "cron"
    assert log.total_checked == 1
    assert log.still_active == 1
    assert log.completed_at is not None


def test_store_failure_on_one_row_is_counted_and_sync_completes(db, monkeypatch):
    import ishimport.services.reconciler as reconciler

    real_apply = reconciler._apply

    def failing_apply(job, status, run_started_at):
        if job.source_id == "2":
            raise RuntimeError("row locked")
        real_apply(job, status, run_started_at)

    monkeypatch.setattr(reconciler, "_apply", failing_apply)
    for source_id in ("1", "2", "3"):
        add_job(db, source_id, "active")

    stats = reconcile(db, "osonish", ["1"])

    assert stats.total_checked == 3
    assert stats.errors == 1
    assert stats.still_active == 1
    assert stats.removed_at_source == 1
    assert stats.error_details == [{"source_id": "2", "operation": "sync", "error": "row locked"}]
    assert state(db, "2").source_status == "active"
    assert state(db, "3").source_status == "removed_at_source"

    log = db.query(ImportLog).one()
    assert log.status == "completed"
    assert log.errors == 1
    assert log.error_details[0]["source_id"] == "2"


def test_rows_not_created_by_the_importer_are_skipped(db):
    add_job(db, "1", "active")
    native = add_job(db, "2", "active")
    native.is_imported = False
    db.commit()

    stats = reconcile(db, "osonish", [])

    assert stats.total_checked == 1
    assert state(db, "1").source_status == "removed_at_source"
    job = state(db, "2")
    assert job.source_status == "active"
    assert job.is_active is True
    assert job.last_checked_at is None
