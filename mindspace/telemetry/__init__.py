"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    PIPELINE_RUNS,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    STAGE_LATENCY,
    observe_request,
    observe_stage,
    record_pipeline_run,
)

__all__ = [
    "ERROR_COUNTER",
    "PIPELINE_RUNS",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "STAGE_LATENCY",
    "observe_request",
    "observe_stage",
    "record_pipeline_run",
]
