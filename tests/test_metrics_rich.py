"""Unit tests for batch metrics."""

from prometheus_client import CollectorRegistry

from metal_batch.monitoring.metrics_rich import BatchMetrics


def test_counters_are_labelled():
    metrics = BatchMetrics()

    metrics.item_outcomes.labels(batch="liquidity_init", outcome="success").inc()
    metrics.item_outcomes.labels(batch="liquidity_init", outcome="success").inc()
    metrics.item_outcomes.labels(batch="liquidity_init", outcome="failure").inc()

    reg = metrics.get_registry()
    assert reg.get_sample_value(
        "batch_item_outcomes_total", {"batch": "liquidity_init", "outcome": "success"}) == 2.0
    assert reg.get_sample_value(
        "batch_item_outcomes_total", {"batch": "liquidity_init", "outcome": "failure"}) == 1.0


def test_instances_do_not_share_registries():
    a = BatchMetrics()
    b = BatchMetrics()
    a.token_jobs_submitted.inc()
    assert a.get_registry().get_sample_value("token_jobs_submitted_total") == 1.0
    assert b.get_registry().get_sample_value("token_jobs_submitted_total") == 0.0


def test_explicit_registry_is_used():
    reg = CollectorRegistry()
    metrics = BatchMetrics(reg)
    metrics.batch_running.set(1)
    assert metrics.get_registry() is reg
    assert reg.get_sample_value("batch_running") == 1.0


def test_latency_histogram():
    metrics = BatchMetrics()
    metrics.request_latency_ms.labels(operation="job_status").observe(120.0)
    reg = metrics.get_registry()
    assert reg.get_sample_value("gateway_request_latency_ms_count", {"operation": "job_status"}) == 1.0
