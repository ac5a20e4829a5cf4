"""Observability helpers for TaskTrail."""

from tasktrail.observability.metrics import metrics

__all__ = ["metrics"]
