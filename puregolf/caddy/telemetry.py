"""Telemetry helpers for the caddy service."""

from __future__ import annotations

import os

from prometheus_client import Counter, Histogram

from puregolf.metrics import REGISTRY

_advice_histogram = Histogram(
    "caddy_advice_latency_ms",
    "Latency of caddy advice generation in milliseconds",
    labelnames=("mode", "risk"),
    registry=REGISTRY,
)

_advice_counter = Counter(
    "caddy_advice_requests_total",
    "Total caddy advice invocations",
    labelnames=("mode", "personalized"),
    registry=REGISTRY,
)

_error_counter = Counter(
    "caddy_advice_errors_total",
    "Caddy advice requests that returned an error envelope",
    labelnames=("code",),
    registry=REGISTRY,
)

_store_failures = Counter(
    "caddy_store_failures_total",
    "Historical store calls that failed or timed out",
    labelnames=("operation", "reason"),
    registry=REGISTRY,
)


def record_advice_metrics(
    *,
    duration_ms: float,
    mode: str,
    risk: str,
    personalized: bool,
) -> None:
    """Publish Prometheus metrics for a successful advice call."""
    _advice_histogram.labels(mode=mode, risk=risk).observe(duration_ms)
    _advice_counter.labels(mode=mode, personalized=str(personalized).lower()).inc()


def record_advice_error(code: str) -> None:
    _error_counter.labels(code=code).inc()


def record_store_failure(operation: str, reason: str) -> None:
    _store_failures.labels(operation=operation, reason=reason).inc()


def build_structured_log_payload(
    *,
    user_id: str | None,
    recommendation: dict,
    risk: str,
    personalization_applied: bool,
    duration_ms: float | None = None,
) -> dict:
    """Build a structured log record for downstream sinks."""
    payload = {
        "user_id": user_id,
        "recommendation": recommendation,
        "risk": risk,
        "personalization_applied": personalization_applied,
        "build_version": os.getenv("BUILD_VERSION", "unknown"),
        "git_sha": os.getenv("GIT_SHA", "unknown"),
    }
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    return payload


__all__ = [
    "build_structured_log_payload",
    "record_advice_error",
    "record_advice_metrics",
    "record_store_failure",
]
