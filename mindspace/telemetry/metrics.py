"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "mindspace_http_requests_total",
    "HTTP requests served, by route and status",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "mindspace_http_request_duration_seconds",
    "Time spent serving HTTP requests",
    ("method", "route"),
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

ERROR_COUNTER = Counter(
    "mindspace_http_server_errors_total",
    "Requests answered with a 5xx status",
    ("method", "route"),
)

PIPELINE_RUNS = Counter(
    "voice_pipeline_runs_total",
    "Voice pipeline runs by outcome and failing stage",
    ("outcome", "failed_stage"),
)

STAGE_LATENCY = Histogram(
    "voice_pipeline_stage_duration_seconds",
    "Duration of each voice pipeline stage in seconds",
    ("stage", "outcome"),
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    labels = {"method": method or "UNKNOWN", "route": route or "unknown"}
    REQUEST_COUNT.labels(status=str(status_code), **labels).inc()
    REQUEST_LATENCY.labels(**labels).observe(max(duration_seconds, 0.0))
    if status_code >= 500:
        ERROR_COUNTER.labels(**labels).inc()


def observe_stage(stage: str, succeeded: bool, duration_seconds: float) -> None:
    """Record how long one pipeline stage took."""

    STAGE_LATENCY.labels(
        stage=stage,
        outcome="success" if succeeded else "failure",
    ).observe(max(duration_seconds, 0.0))


def record_pipeline_run(failed_stage: str | None) -> None:
    """Count a finished pipeline run; ``failed_stage`` is ``None`` on success."""

    PIPELINE_RUNS.labels(
        outcome="failure" if failed_stage else "success",
        failed_stage=failed_stage or "none",
    ).inc()
