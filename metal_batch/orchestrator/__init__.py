"""
Orchestrator package - single-flight batch coordination.
"""

from metal_batch.orchestrator.batch_orchestrator import (
    BatchKind,
    BatchOrchestrator,
    BatchReport,
    ItemResult,
    OrchestratorConfig,
)

__all__ = [
    "BatchKind",
    "BatchOrchestrator",
    "BatchReport",
    "ItemResult",
    "OrchestratorConfig",
]
