"""
Command line entry point wiring all components.

    metal-batch create-tokens --entity 0:Acme --entity 1:"Blue Line"
    metal-batch init-liquidity
    metal-batch list-tokens
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from metal_batch.api.gateway import MetalGateway
from metal_batch.config.config import Settings
from metal_batch.entities import Entity, parse_entity
from metal_batch.execution.job_poller import JobPoller, JobPollerConfig
from metal_batch.infra.logging_cfg import build_logger
from metal_batch.monitoring.metrics_rich import BatchMetrics
from metal_batch.orchestrator.batch_orchestrator import BatchOrchestrator, BatchReport, OrchestratorConfig

EXIT_OK = 0
EXIT_FAILED_ITEMS = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="metal-batch", description="Batch token operations against the Metal API")
    parser.add_argument("--env-file", default=None, help="dotenv file to load (default: search for .env)")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-tokens", help="create one token per entity")
    create.add_argument("--entity", action="append", required=True, metavar="ID:NAME",
                        help="entity to tokenize; repeat for more")

    sub.add_parser("init-liquidity", help="request liquidity for every merchant token")
    sub.add_parser("list-tokens", help="print the merchant's tokens as JSON lines")
    return parser


async def run(args: argparse.Namespace, cfg: Settings, entities: List[Entity], log: logging.Logger) -> int:
    credential = cfg.credential()
    merchant = cfg.require_merchant()
    metrics = BatchMetrics()

    async with MetalGateway(
        cfg.base_url,
        liquidity_base_url=cfg.liquidity_base_url,
        timeout=cfg.http_timeout,
        metrics=metrics,
    ) as gateway:
        if args.command == "list-tokens":
            tokens = await gateway.list_merchant_tokens(credential, merchant)
            for token in tokens:
                print(json.dumps(token.__dict__))
            return EXIT_OK

        poller = JobPoller(
            gateway,
            JobPollerConfig(max_attempts=cfg.poll_max_attempts, interval_sec=cfg.poll_interval_sec),
            metrics=metrics,
        )
        orchestrator = BatchOrchestrator(
            gateway=gateway,
            poller=poller,
            entity_source=lambda: entities,
            on_liquidity_complete=lambda: log.info(json.dumps({"event": "liquidity_init_complete"})),
            config=OrchestratorConfig(liquidity_delay_sec=cfg.liquidity_delay_sec),
            metrics=metrics,
        )

        if args.command == "create-tokens":
            started = orchestrator.start_token_creation_batch(credential, merchant)
        else:
            started = orchestrator.start_liquidity_init_batch(credential, merchant)
        if not started:
            log.error(json.dumps({"event": "batch_not_started", "command": args.command}))
            return EXIT_FAILED_ITEMS

        report = await orchestrator.wait()
        return _exit_code(report)


def _exit_code(report: Optional[BatchReport]) -> int:
    if report is None:
        return EXIT_FAILED_ITEMS
    return EXIT_OK if report.all_succeeded else EXIT_FAILED_ITEMS


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        entities = [parse_entity(e) for e in getattr(args, "entity", None) or []]
        cfg = Settings.load(args.env_file)
        cfg.credential()
        cfg.require_merchant()
    except (ValueError, RuntimeError) as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    log = build_logger(level=getattr(logging, cfg.log_level), file_path=cfg.log_file)
    cfg.log_summary(log)
    log.info(json.dumps({"event": "startup", "command": args.command, "settings": cfg.dump()}))
    return asyncio.run(run(args, cfg, entities, log))


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nStopped by user")
        sys.exit(130)
