from __future__ import annotations

from puregolf.caddy import telemetry
from puregolf.metrics import REGISTRY


def _value(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_record_advice_metrics() -> None:
    count_labels = {"mode": "quick", "personalized": "true"}
    latency_labels = {"mode": "quick", "risk": "low"}
    before_count = _value("caddy_advice_requests_total", count_labels)
    before_obs = _value("caddy_advice_latency_ms_count", latency_labels)
    before_sum = _value("caddy_advice_latency_ms_sum", latency_labels)

    telemetry.record_advice_metrics(duration_ms=12.5, mode="quick", risk="low", personalized=True)

    assert _value("caddy_advice_requests_total", count_labels) == before_count + 1
    assert _value("caddy_advice_latency_ms_count", latency_labels) == before_obs + 1
    assert _value("caddy_advice_latency_ms_sum", latency_labels) == before_sum + 12.5


def test_record_error_and_store_failure() -> None:
    before_error = _value("caddy_advice_errors_total", {"code": "QUOTA_EXCEEDED"})
    before_store = _value("caddy_store_failures_total", {"operation": "save", "reason": "rejected"})

    telemetry.record_advice_error("QUOTA_EXCEEDED")
    telemetry.record_store_failure("save", "rejected")

    assert _value("caddy_advice_errors_total", {"code": "QUOTA_EXCEEDED"}) == before_error + 1
    assert (
        _value("caddy_store_failures_total", {"operation": "save", "reason": "rejected"})
        == before_store + 1
    )


def test_structured_log_payload(monkeypatch) -> None:
    monkeypatch.setenv("BUILD_VERSION", "1.2.3")
    monkeypatch.setenv("GIT_SHA", "abc123")

    payload = telemetry.build_structured_log_payload(
        user_id="golfer-1",
        recommendation={"primary_club": "7-Iron"},
        risk="medium",
        personalization_applied=True,
        duration_ms=4.2,
    )

    assert payload == {
        "user_id": "golfer-1",
        "recommendation": {"primary_club": "7-Iron"},
        "risk": "medium",
        "personalization_applied": True,
        "build_version": "1.2.3",
        "git_sha": "abc123",
        "duration_ms": 4.2,
    }


def test_structured_log_payload_without_duration(monkeypatch) -> None:
    monkeypatch.delenv("BUILD_VERSION", raising=False)
    monkeypatch.delenv("GIT_SHA", raising=False)

    payload = telemetry.build_structured_log_payload(
        user_id=None, recommendation={}, risk="high", personalization_applied=False
    )

    assert "duration_ms" not in payload
    assert payload["build_version"] == "unknown"
    assert payload["git_sha"] == "unknown"
