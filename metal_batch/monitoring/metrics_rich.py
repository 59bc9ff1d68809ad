"""
Prometheus metrics for batch observability.

Organized into: gateway, jobs, batches.
"""

from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry
from typing import Optional


class BatchMetrics:
    """Metrics for token and liquidity batches."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        reg = registry or CollectorRegistry()
        self._registry = reg

        # === Gateway Metrics ===
        self.gateway_errors = Counter(
            'gateway_errors_total',
            'Remote calls that degraded to a sentinel result',
            labelnames=['operation', 'kind'],
            registry=reg
        )
        self.request_latency_ms = Histogram(
            'gateway_request_latency_ms',
            'Round trip time per remote call (milliseconds)',
            labelnames=['operation'],
            buckets=[50, 100, 250, 500, 1000, 2500, 5000, 15000],
            registry=reg
        )

        # === Job Metrics ===
        self.token_jobs_submitted = Counter(
            'token_jobs_submitted_total',
            'Token creation jobs accepted by the remote service',
            registry=reg
        )
        self.job_poll_attempts = Histogram(
            'job_poll_attempts',
            'Status polls needed to reach a terminal state',
            buckets=[1, 2, 3, 5, 10, 20, 30, 60],
            registry=reg
        )

        # === Batch Metrics ===
        self.batches_total = Counter(
            'batches_total',
            'Batches started',
            labelnames=['batch'],
            registry=reg
        )
        self.item_outcomes = Counter(
            'batch_item_outcomes_total',
            'Recorded item outcomes',
            labelnames=['batch', 'outcome'],
            registry=reg
        )
        self.batch_running = Gauge(
            'batch_running',
            '1 while a batch holds the single-flight gate',
            registry=reg
        )

    def get_registry(self) -> CollectorRegistry:
        return self._registry
