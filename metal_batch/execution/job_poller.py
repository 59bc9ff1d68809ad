"""
JobPoller: drive one remote job to a terminal state.

Architecture:
    The remote service owns job state; the poller only observes it with
    bounded patience. Each attempt fetches the raw status through the
    gateway and decodes it:

        Pending  -> sleep interval, retry (up to max_attempts)
        Success  -> stop, report result name/address
        Failed   -> stop, report reason (never retried)
        Unknown  -> stop, report as failure (never retried)
        ""       -> transport failure, stop immediately
        exhausted while Pending -> GAVE_UP

    Waiting is an ``await`` so only the batch task is suspended.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, TYPE_CHECKING

from metal_batch.api.models import (
    Credential,
    JobFailed,
    JobSucceeded,
    JobUnknown,
    decode_job_status,
)
from metal_batch.infra.logging_cfg import LOGGER_NAME, log_event

if TYPE_CHECKING:
    from metal_batch.api.gateway import MetalGateway
    from metal_batch.monitoring.metrics_rich import BatchMetrics

log = logging.getLogger(LOGGER_NAME)


class Outcome(Enum):
    """Terminal outcome recorded for one batch item."""
    SUCCESS = "success"
    FAILURE = "failure"
    GAVE_UP = "gave_up"


@dataclass
class JobPollerConfig:
    """Configuration for JobPoller."""
    max_attempts: int = 60
    interval_sec: float = 1.0


@dataclass
class PollResult:
    """Terminal result of polling one job."""
    outcome: Outcome
    attempts: int
    result_name: str = ""
    result_address: str = ""
    reason: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.outcome is Outcome.SUCCESS


class JobPoller:
    """
    Poll-until-terminal loop for token creation jobs.

    Usage:
        poller = JobPoller(gateway, JobPollerConfig(max_attempts=60, interval_sec=1.0))
        result = await poller.poll(credential, job_id)
        if result.success:
            print(result.result_address)
    """

    def __init__(
        self,
        gateway: "MetalGateway",
        config: Optional[JobPollerConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        metrics: Optional["BatchMetrics"] = None,
    ) -> None:
        self.gateway = gateway
        self.config = config or JobPollerConfig()
        self._sleep = sleep
        self.metrics = metrics

    async def poll(self, credential: Credential, job_id: str) -> PollResult:
        start = time.time()
        max_attempts = max(1, self.config.max_attempts)
        attempt = 0

        while attempt < max_attempts:
            attempt += 1
            raw = await self.gateway.get_job_status(credential, job_id)
            if not raw:
                return self._finish(job_id, start, Outcome.FAILURE, attempt, reason="transport_error")

            status = decode_job_status(raw)
            if isinstance(status, JobSucceeded):
                return self._finish(
                    job_id, start, Outcome.SUCCESS, attempt,
                    result_name=status.result_name,
                    result_address=status.result_address,
                )
            if isinstance(status, JobFailed):
                return self._finish(job_id, start, Outcome.FAILURE, attempt, reason=status.reason or "failed")
            if isinstance(status, JobUnknown):
                return self._finish(
                    job_id, start, Outcome.FAILURE, attempt,
                    reason=f"unknown_status: {status.raw_tag or '<missing>'}",
                )

            # JobPending
            log_event(log, "job_pending", level=logging.DEBUG, job_id=job_id, attempt=attempt)
            if attempt < max_attempts:
                await self._sleep(self.config.interval_sec)

        return self._finish(job_id, start, Outcome.GAVE_UP, attempt, reason="still_pending")

    def _finish(
        self,
        job_id: str,
        start: float,
        outcome: Outcome,
        attempts: int,
        result_name: str = "",
        result_address: str = "",
        reason: Optional[str] = None,
    ) -> PollResult:
        duration_ms = (time.time() - start) * 1000
        if self.metrics:
            self.metrics.job_poll_attempts.observe(attempts)
        level = logging.INFO if outcome is Outcome.SUCCESS else logging.WARNING
        log_event(
            log, "job_terminal", level=level,
            job_id=job_id, outcome=outcome.value, attempts=attempts,
            address=result_address or None, reason=reason,
            duration_ms=round(duration_ms, 1),
        )
        return PollResult(
            outcome=outcome,
            attempts=attempts,
            result_name=result_name,
            result_address=result_address,
            reason=reason,
            duration_ms=duration_ms,
        )
