"""
Execution layer: single-flight gate and job polling.
"""

from metal_batch.execution.job_poller import JobPoller, JobPollerConfig, Outcome, PollResult
from metal_batch.execution.single_flight import SingleFlightGate

__all__ = [
    "JobPoller",
    "JobPollerConfig",
    "Outcome",
    "PollResult",
    "SingleFlightGate",
]
