"""Prometheus metrics for the Admin API.

Defines operational metrics of background jobs and the education
organization refresh.
"""

from prometheus_client import Counter, Histogram

# Job runs
job_runs_total = Counter(
    "adminapi_job_runs_total",
    "Total job runs by terminal status",
    ["job_id", "status"]  # status: Completed|Error
)

# Education organization refresh
edorg_instance_refresh_total = Counter(
    "adminapi_edorg_instance_refresh_total",
    "ODS instance refreshes by outcome",
    ["outcome"]  # outcome: succeeded|failed|cancelled
)

edorg_rows_reconciled_total = Counter(
    "adminapi_edorg_rows_reconciled_total",
    "Education organization cache rows written by the refresh",
    ["operation"]  # operation: inserted|updated|deleted
)

edorg_rows_skipped_total = Counter(
    "adminapi_edorg_rows_skipped_total",
    "Source rows skipped because they could not be parsed"
)

edorg_instance_refresh_duration_seconds = Histogram(
    "adminapi_edorg_instance_refresh_duration_seconds",
    "Time spent refreshing one ODS instance in seconds",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0]
)
