"""Utility helpers for the Mindspace backend."""

from .naming import new_run_id, timestamp_ms, unique_suffix

__all__ = ["new_run_id", "timestamp_ms", "unique_suffix"]
