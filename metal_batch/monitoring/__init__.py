"""
Monitoring package.
"""

from metal_batch.monitoring.metrics_rich import BatchMetrics

__all__ = ["BatchMetrics"]
