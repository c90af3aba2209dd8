"""Unit tests for structured logging with run correlation."""

import contextvars
import json
import logging
import sys
import threading

from observability.context import bind_run_context, get_run_id, get_tenant
from observability.logging_config import CorrelationFilter, JSONFormatter


def make_record(message="Refreshing", **extra):
    record = logging.LogRecord(
        name="edorgs.service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationFilter:
    """Test enrichment of records from the bound context."""

    def test_no_context(self):
        record = make_record()

        CorrelationFilter().filter(record)

        assert record.request_id == "no-request-id"
        assert record.run_id is None
        assert record.tenant is None

    def test_bound_run_context(self):
        record = make_record()

        with bind_run_context("RefreshEducationOrganizationsJob_abc", "tenant1"):
            CorrelationFilter().filter(record)

        assert record.run_id == "RefreshEducationOrganizationsJob_abc"
        assert record.tenant == "tenant1"

    def test_explicit_extra_wins(self):
        record = make_record(tenant="tenant2")

        with bind_run_context("Job_1", "tenant1"):
            CorrelationFilter().filter(record)

        assert record.tenant == "tenant2"

    def test_context_is_reset_after_block(self):
        with bind_run_context("Job_1", "tenant1"):
            pass

        assert get_run_id() is None
        assert get_tenant() is None

    def test_empty_tenant_is_unbound(self):
        with bind_run_context("Job_1", ""):
            assert get_tenant() is None

    def test_copied_context_reaches_worker_thread(self):
        seen = {}

        def worker():
            seen["run_id"] = get_run_id()

        with bind_run_context("Job_1", "tenant1"):
            ctx = contextvars.copy_context()
        thread = threading.Thread(target=ctx.run, args=(worker,))
        thread.start()
        thread.join()

        assert seen["run_id"] == "Job_1"


class TestJSONFormatter:
    """Test the JSON document written per record."""

    def test_basic_fields(self):
        record = make_record("Refreshed 3 instances")
        CorrelationFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "edorgs.service"
        assert data["message"] == "Refreshed 3 instances"
        assert data["request_id"] == "no-request-id"
        assert "run_id" not in data

    def test_extra_fields(self):
        record = make_record(instance_id=5, tenant="tenant1", run_id="Job_1", duration_ms=12.5)

        data = json.loads(JSONFormatter().format(record))

        assert data["instance_id"] == 5
        assert data["tenant"] == "tenant1"
        assert data["run_id"] == "Job_1"
        assert data["duration_ms"] == 12.5

    def test_exception_info(self):
        try:
            raise ConnectionError("ODS unreachable")
        except ConnectionError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert data["error"] == "ODS unreachable"
        assert "ConnectionError" in data["traceback"]
