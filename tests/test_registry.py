# tests/test_registry.py

from datetime import datetime, timedelta

import pytest

from models import InvalidTransition, JobStatus
from registry import JobRegistry
from schemas import JobRequest


def make_request(**kwargs):
    kwargs.setdefault("topic", "Ocean exploration")
    kwargs.setdefault("duration", 120)
    return JobRequest(**kwargs)


def test_create_starts_queued_with_one_log_line():
    registry = JobRegistry()

    job = registry.create(make_request())

    assert job.status == JobStatus.QUEUED
    assert len(job.logs) == 1
    assert "Job queued" in str(job.logs[0])
    assert registry.get(job.id) is job


def test_ids_are_unique():
    registry = JobRegistry()

    ids = {registry.create(make_request()).id for _ in range(1000)}

    assert len(ids) == 1000
    assert len(registry) == 1000


def test_unknown_id_is_none():
    registry = JobRegistry()
    registry.create(make_request())

    assert registry.get("does-not-exist") is None


def test_state_machine_rejects_backwards_moves():
    registry = JobRegistry()
    job = registry.create(make_request())

    job.mark_running()
    job.mark_done("https://x/v.mp4", "https://x/t.jpg", "caption")

    with pytest.raises(InvalidTransition):
        job.mark_running()
    with pytest.raises(InvalidTransition):
        job.mark_failed("late failure")
    with pytest.raises(InvalidTransition):
        job.log("more work")
    assert job.status == JobStatus.DONE
    assert job.error is None


def test_queued_cannot_skip_to_done():
    job = JobRegistry().create(make_request())

    with pytest.raises(InvalidTransition):
        job.mark_done("https://x/v.mp4", "https://x/t.jpg", "caption")


def test_snapshot_hides_fields_outside_their_state():
    job = JobRegistry().create(make_request())
    job.mark_running()
    job.result_url = "https://x/partial.mp4"

    snapshot = job.to_dict()

    assert snapshot["status"] == "running"
    assert snapshot["result_url"] is None
    assert snapshot["error"] is None


def test_failed_job_records_error_and_final_log_line():
    job = JobRegistry().create(make_request())
    job.mark_running()

    job.mark_failed("ProviderError: boom")

    assert job.status == JobStatus.FAILED
    assert job.error == "ProviderError: boom"
    assert job.logs[-1].message == "Job failed: ProviderError: boom"
    assert job.finished_at is not None


def test_evict_expired_only_drops_old_terminal_jobs():
    registry = JobRegistry(ttl_seconds=60)
    old_done = registry.create(make_request())
    old_done.mark_running()
    old_done.mark_done("https://x/v.mp4", "https://x/t.jpg", "caption")
    old_done.finished_at = datetime.now() - timedelta(minutes=5)

    fresh_failed = registry.create(make_request())
    fresh_failed.mark_failed("Cancelled")

    still_running = registry.create(make_request())
    still_running.mark_running()
    still_running.created_at = datetime.now() - timedelta(days=1)

    evicted = registry.evict_expired()

    assert evicted == 1
    assert registry.get(old_done.id) is None
    assert registry.get(fresh_failed.id) is fresh_failed
    assert registry.get(still_running.id) is still_running


def test_cancel_unknown_or_finished_job_is_a_no_op():
    registry = JobRegistry()
    job = registry.create(make_request())
    job.mark_failed("Cancelled")

    assert registry.cancel("nope") is False
    assert registry.cancel(job.id) is False


def test_list_is_newest_first_and_filters_by_status():
    registry = JobRegistry()
    first = registry.create(make_request(topic="First"))
    first.created_at = datetime.now() - timedelta(seconds=10)
    second = registry.create(make_request(topic="Second"))
    second.mark_running()

    assert [j.id for j in registry.list()] == [second.id, first.id]
    assert [j.id for j in registry.list(status=JobStatus.QUEUED)] == [first.id]
    assert len(registry.list(limit=1)) == 1
