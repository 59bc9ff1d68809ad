"""
BatchOrchestrator: map host entities to remote jobs, one outcome each.

Two batch shapes share one skeleton:

- Token creation: for each entity (in input order) derive a name and
  symbol, submit a create-token job, poll it to a terminal state and
  record SUCCESS / FAILURE / GAVE_UP.
- Liquidity initialization: list the merchant's tokens, request
  liquidity for each with a short delay between calls, record
  SUCCESS / FAILURE, then announce completion to the host once.

Architecture:
    The orchestrator is an explicit context object. It owns the
    SingleFlightGate, so two batches never overlap, and runs each batch
    as a detached asyncio.Task. ``start_*`` returns as soon as the gate
    is taken; ``wait()`` lets hosts and tests await the report.

Failure Isolation:
    A failing item is recorded and the batch moves on. Nothing raised
    while processing an item escapes the task; the gate is released in
    ``finally`` on every exit path, cancellation included.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union, TYPE_CHECKING

from metal_batch.api.models import Credential
from metal_batch.entities import Entity, EntitySource, derive_token_identity
from metal_batch.execution.job_poller import Outcome
from metal_batch.execution.single_flight import SingleFlightGate
from metal_batch.infra.logging_cfg import LOGGER_NAME, log_event

if TYPE_CHECKING:
    from metal_batch.api.gateway import MetalGateway
    from metal_batch.execution.job_poller import JobPoller
    from metal_batch.monitoring.metrics_rich import BatchMetrics

log = logging.getLogger(LOGGER_NAME)


class BatchKind(Enum):
    TOKEN_CREATION = "token_creation"
    LIQUIDITY_INIT = "liquidity_init"


@dataclass(frozen=True)
class ItemResult:
    """Outcome recorded for one entity or token."""
    key: str
    outcome: Outcome
    job_id: str = ""
    token_name: str = ""
    token_symbol: str = ""
    token_address: str = ""
    reason: Optional[str] = None
    attempts: int = 0


@dataclass
class BatchReport:
    """Every item of one batch, in input order."""
    kind: BatchKind
    merchant_address: str
    items: List[ItemResult] = field(default_factory=list)
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    nothing_to_do: bool = False

    def _count(self, outcome: Outcome) -> int:
        return sum(1 for item in self.items if item.outcome is outcome)

    @property
    def succeeded(self) -> int:
        return self._count(Outcome.SUCCESS)

    @property
    def failed(self) -> int:
        return self._count(Outcome.FAILURE)

    @property
    def gave_up(self) -> int:
        return self._count(Outcome.GAVE_UP)

    @property
    def all_succeeded(self) -> bool:
        return self.succeeded == len(self.items)

    def summary(self) -> Dict[str, Any]:
        duration = (self.finished_at or time.time()) - self.started_at
        return {
            "batch": self.kind.value,
            "total": len(self.items),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "gave_up": self.gave_up,
            "nothing_to_do": self.nothing_to_do,
            "duration_sec": round(duration, 3),
        }


@dataclass
class OrchestratorConfig:
    """Configuration for BatchOrchestrator."""
    # Pause between liquidity requests (remote rate limit)
    liquidity_delay_sec: float = 0.5
    token_name_suffix: str = " Token"


CompletionHook = Callable[[], Union[None, Awaitable[None]]]


class BatchOrchestrator:
    """
    Single-flight runner for token and liquidity batches.

    Usage:
        orchestrator = BatchOrchestrator(
            gateway=gateway,
            poller=JobPoller(gateway),
            entity_source=lambda: companies,
            on_liquidity_complete=unpause,
        )
        if orchestrator.start_token_creation_batch(credential, merchant):
            report = await orchestrator.wait()
    """

    def __init__(
        self,
        gateway: "MetalGateway",
        poller: "JobPoller",
        entity_source: EntitySource,
        gate: Optional[SingleFlightGate] = None,
        on_liquidity_complete: Optional[CompletionHook] = None,
        config: Optional[OrchestratorConfig] = None,
        metrics: Optional["BatchMetrics"] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.gateway = gateway
        self.poller = poller
        self.entity_source = entity_source
        self._gate = gate or SingleFlightGate()
        self.on_liquidity_complete = on_liquidity_complete
        self.config = config or OrchestratorConfig()
        self.metrics = metrics
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.last_report: Optional[BatchReport] = None

    # ========== Host API ==========

    def is_running(self) -> bool:
        return self._gate.is_running

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def start_token_creation_batch(self, credential: Union[Credential, str], merchant_address: str) -> bool:
        """Start a token creation batch. False if a batch is already running."""
        return self._start(BatchKind.TOKEN_CREATION, self.run_token_creation_batch, credential, merchant_address)

    def start_liquidity_init_batch(self, credential: Union[Credential, str], merchant_address: str) -> bool:
        """Start a liquidity batch. False if a batch is already running."""
        return self._start(BatchKind.LIQUIDITY_INIT, self.run_liquidity_init_batch, credential, merchant_address)

    async def wait(self) -> Optional[BatchReport]:
        """Await the current (or most recent) batch and return its report."""
        if self._task is None:
            return self.last_report
        return await self._task

    def _start(
        self,
        kind: BatchKind,
        runner: Callable[[Credential, str], Awaitable[BatchReport]],
        credential: Union[Credential, str],
        merchant_address: str,
    ) -> bool:
        cred = credential if isinstance(credential, Credential) else Credential(credential)
        if not merchant_address:
            raise ValueError("merchant_address must be non-empty")

        if not self._gate.try_acquire():
            log_event(log, "batch_rejected", level=logging.WARNING, batch=kind.value, reason="already_running")
            return False

        try:
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(
                self._run_gated(kind, runner, cred, merchant_address),
                name=f"metal-{kind.value}",
            )
        except BaseException:
            self._gate.release()
            raise

        if self.metrics:
            self.metrics.batch_running.set(1)
            self.metrics.batches_total.labels(batch=kind.value).inc()
        log_event(log, "batch_scheduled", batch=kind.value, merchant=merchant_address)
        return True

    async def _run_gated(
        self,
        kind: BatchKind,
        runner: Callable[[Credential, str], Awaitable[BatchReport]],
        credential: Credential,
        merchant_address: str,
    ) -> BatchReport:
        try:
            report = await runner(credential, merchant_address)
            self.last_report = report
            return report
        finally:
            self._gate.release()
            if self.metrics:
                self.metrics.batch_running.set(0)
            log_event(log, "batch_gate_released", level=logging.DEBUG, batch=kind.value)

    # ========== Batch bodies ==========

    async def run_token_creation_batch(self, credential: Credential, merchant_address: str) -> BatchReport:
        """Create one token per entity. The caller is expected to hold the gate."""
        report = BatchReport(kind=BatchKind.TOKEN_CREATION, merchant_address=merchant_address)

        try:
            entities = list(self.entity_source())
        except Exception as exc:
            log_event(log, "entity_source_error", level=logging.ERROR, error=str(exc))
            return self._close(report)

        total = len(entities)
        log_event(log, "batch_started", batch=report.kind.value, items=total)

        for index, entity in enumerate(entities, start=1):
            try:
                item = await self._create_token_for(credential, merchant_address, entity)
            except Exception as exc:
                item = ItemResult(
                    key=_item_key(entity, index),
                    outcome=Outcome.FAILURE,
                    reason=f"error: {type(exc).__name__}: {exc}",
                )
            self._record(report, item, index, total)

        return self._close(report)

    async def _create_token_for(self, credential: Credential, merchant_address: str, entity: Entity) -> ItemResult:
        name, symbol = derive_token_identity(entity, self.config.token_name_suffix)
        job_id = await self.gateway.create_token(credential, name, symbol, merchant_address)
        if not job_id:
            return ItemResult(
                key=entity.key,
                outcome=Outcome.FAILURE,
                token_name=name,
                token_symbol=symbol,
                reason="job_submission_failed",
            )

        if self.metrics:
            self.metrics.token_jobs_submitted.inc()
        log_event(log, "token_job_submitted", entity=entity.key, job_id=job_id, symbol=symbol)

        result = await self.poller.poll(credential, job_id)
        return ItemResult(
            key=entity.key,
            outcome=result.outcome,
            job_id=job_id,
            token_name=result.result_name or name,
            token_symbol=symbol,
            token_address=result.result_address,
            reason=result.reason,
            attempts=result.attempts,
        )

    async def run_liquidity_init_batch(self, credential: Credential, merchant_address: str) -> BatchReport:
        """Request liquidity for every merchant token. The caller is expected to hold the gate."""
        report = BatchReport(kind=BatchKind.LIQUIDITY_INIT, merchant_address=merchant_address)

        try:
            tokens = await self.gateway.list_merchant_tokens(credential, merchant_address)
        except Exception as exc:
            log_event(log, "liquidity_list_error", level=logging.ERROR,
                      merchant=merchant_address, error=f"{type(exc).__name__}: {exc}")
            tokens = []
        if not tokens:
            report.nothing_to_do = True
            log_event(log, "liquidity_nothing_to_do", merchant=merchant_address)
        else:
            total = len(tokens)
            log_event(log, "batch_started", batch=report.kind.value, items=total)
            for index, token in enumerate(tokens, start=1):
                if index > 1 and self.config.liquidity_delay_sec > 0:
                    await self._sleep(self.config.liquidity_delay_sec)
                try:
                    ok = await self.gateway.create_liquidity(credential, token.address)
                    reason = None if ok else "liquidity_rejected"
                except Exception as exc:
                    ok = False
                    reason = f"error: {type(exc).__name__}: {exc}"
                item = ItemResult(
                    key=token.address,
                    outcome=Outcome.SUCCESS if ok else Outcome.FAILURE,
                    token_name=token.name,
                    token_symbol=token.symbol,
                    token_address=token.address,
                    reason=reason,
                )
                self._record(report, item, index, total)

        await self._announce_liquidity_complete()
        return self._close(report)

    async def _announce_liquidity_complete(self) -> None:
        if self.on_liquidity_complete is None:
            return
        try:
            result = self.on_liquidity_complete()
            if asyncio.iscoroutine(result):
                await result
        except Exception as exc:
            log_event(log, "completion_hook_error", level=logging.ERROR, error=str(exc))

    # ========== Reporting ==========

    def _record(self, report: BatchReport, item: ItemResult, index: int, total: int) -> None:
        report.items.append(item)
        if self.metrics:
            self.metrics.item_outcomes.labels(batch=report.kind.value, outcome=item.outcome.value).inc()
        level = logging.INFO if item.outcome is Outcome.SUCCESS else logging.WARNING
        log_event(
            log, "batch_item", level=level,
            batch=report.kind.value, index=index, total=total, key=item.key,
            outcome=item.outcome.value, symbol=item.token_symbol or None,
            address=item.token_address or None, reason=item.reason,
        )

    def _close(self, report: BatchReport) -> BatchReport:
        report.finished_at = time.time()
        log_event(log, "batch_finished", **report.summary())
        return report


def _item_key(entity: Any, index: int) -> str:
    key = getattr(entity, "key", None)
    return key if isinstance(key, str) and key else f"item-{index}"
