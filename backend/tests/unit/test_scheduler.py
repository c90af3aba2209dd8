"""Unit tests for job scheduling and the periodic refresh schedule."""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from jobs.scheduler import build_beat_schedule, schedule_job, schedule_refresh
from models.job_status import JobRunStatus


@pytest.fixture
def calls():
    """Parent mock recording the order of status writes and enqueues."""
    parent = Mock()
    parent.task.name = "RefreshEducationOrganizationsJob"
    return parent


class TestScheduleJob:
    """Test enqueueing status-tracked jobs."""

    def test_start_immediately(self, calls):
        job_data = {"tenant_name": "tenant1", "instance_id": 3}

        run_id = schedule_job(calls.task, job_data, calls.status_service, start_immediately=True)

        fire_token = calls.task.apply_async.call_args.kwargs["task_id"]
        assert run_id == f"RefreshEducationOrganizationsJob_{fire_token}"
        calls.status_service.set_status.assert_called_once_with(
            run_id, JobRunStatus.PENDING, "tenant1"
        )
        calls.task.apply_async.assert_called_once_with(kwargs=job_data, task_id=fire_token)

    def test_pending_is_written_before_enqueue(self, calls):
        schedule_job(calls.task, {}, calls.status_service, start_immediately=True)

        names = [name for name, _, _ in calls.mock_calls]
        assert names == ["status_service.set_status", "task.apply_async"]

    def test_delay_becomes_countdown(self, calls):
        schedule_job(calls.task, {}, calls.status_service, delay=timedelta(seconds=30))

        assert calls.task.apply_async.call_args.kwargs["countdown"] == 30.0

    def test_requires_start_or_delay(self, calls):
        with pytest.raises(ValueError, match="Must specify start_immediately or delay."):
            schedule_job(calls.task, {}, calls.status_service)

        calls.status_service.set_status.assert_not_called()
        calls.task.apply_async.assert_not_called()

    def test_each_enqueue_gets_new_run_id(self, calls):
        first = schedule_job(calls.task, {}, calls.status_service, start_immediately=True)
        second = schedule_job(calls.task, {}, calls.status_service, start_immediately=True)

        assert first != second

    def test_enqueue_failure_marks_run_as_error(self, calls):
        calls.task.apply_async.side_effect = ConnectionError("broker down")

        with pytest.raises(ConnectionError, match="broker down"):
            schedule_job(calls.task, {"tenant_name": "tenant1"}, calls.status_service, start_immediately=True)

        run_id = calls.status_service.set_status.call_args_list[0].args[0]
        assert [c.args for c in calls.status_service.set_status.call_args_list] == [
            (run_id, JobRunStatus.PENDING, "tenant1"),
            (run_id, JobRunStatus.ERROR, "tenant1", "broker down"),
        ]

    def test_missing_tenant_records_default_scope(self, calls):
        run_id = schedule_job(calls.task, {"tenant_name": None}, calls.status_service, start_immediately=True)

        calls.status_service.set_status.assert_called_once_with(run_id, JobRunStatus.PENDING, "")


class TestScheduleRefresh:
    """Test enqueueing the education organization refresh."""

    def test_enqueues_refresh_task(self, monkeypatch, calls):
        monkeypatch.setattr("edorgs.tasks.refresh_education_organizations_task", calls.task)

        run_id = schedule_refresh("tenant1", 7, calls.status_service)

        assert run_id.startswith("RefreshEducationOrganizationsJob_")
        assert calls.task.apply_async.call_args.kwargs["kwargs"] == {
            "tenant_name": "tenant1",
            "instance_id": 7,
        }

    def test_all_instances(self, monkeypatch, calls):
        monkeypatch.setattr("edorgs.tasks.refresh_education_organizations_task", calls.task)

        schedule_refresh(None, None, calls.status_service)

        assert calls.task.apply_async.call_args.kwargs["kwargs"] == {
            "tenant_name": "",
            "instance_id": None,
        }


class TestBeatSchedule:
    """Test the periodic refresh schedule."""

    def test_disabled_when_interval_is_zero(self):
        settings = Mock(EDORG_REFRESH_INTERVAL_MINUTES=0, MULTI_TENANCY=False, TENANTS={})

        assert build_beat_schedule(settings) == {}

    def test_single_tenant_entry(self):
        settings = Mock(EDORG_REFRESH_INTERVAL_MINUTES=15, MULTI_TENANCY=False, TENANTS={})

        schedule = build_beat_schedule(settings)

        assert list(schedule) == ["RefreshEducationOrganizationsJob-default"]
        entry = schedule["RefreshEducationOrganizationsJob-default"]
        assert entry["task"] == "RefreshEducationOrganizationsJob"
        assert entry["schedule"].run_every == timedelta(minutes=15)
        assert entry["kwargs"] == {"tenant_name": "", "instance_id": None}

    def test_one_entry_per_tenant(self):
        settings = Mock(
            EDORG_REFRESH_INTERVAL_MINUTES=60,
            MULTI_TENANCY=True,
            TENANTS={"tenant1": {}, "tenant2": {}},
        )

        schedule = build_beat_schedule(settings)

        assert sorted(schedule) == [
            "RefreshEducationOrganizationsJob-tenant1",
            "RefreshEducationOrganizationsJob-tenant2",
        ]
        assert schedule["RefreshEducationOrganizationsJob-tenant2"]["kwargs"]["tenant_name"] == "tenant2"
