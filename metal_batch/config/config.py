"""
Environment-driven configuration with validation.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from metal_batch.api.models import Credential
from metal_batch.infra.logging_cfg import LOGGER_NAME

DEFAULT_BASE_URL = "https://api.metal.build"
LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    merchant_address: Optional[str]
    base_url: str
    # The liquidity endpoint has been served from more than one host
    liquidity_base_url: str
    http_timeout: float
    poll_max_attempts: int
    poll_interval_sec: float
    liquidity_delay_sec: float
    log_file: Optional[str]
    log_level: str

    def dump(self) -> dict:
        """Return a dict of settings for logging, with the API key masked."""
        data = self.__dict__.copy()
        data["api_key"] = "***" if self.api_key else None
        return data

    @classmethod
    def load(cls, env_file: Optional[str] = None) -> "Settings":
        load_dotenv(env_file)

        def _int_env(key: str, default: int) -> int:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return int(raw)

        def _float_env(key: str, default: float) -> float:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return float(raw)

        base_url = os.getenv("METAL_BASE_URL") or DEFAULT_BASE_URL
        log_file = os.getenv("METAL_LOG_FILE", "metal_batch.log")
        cfg = cls(
            api_key=os.getenv("METAL_API_KEY") or None,
            merchant_address=os.getenv("METAL_MERCHANT_ADDRESS") or None,
            base_url=base_url,
            liquidity_base_url=os.getenv("METAL_LIQUIDITY_BASE_URL") or base_url,
            http_timeout=_float_env("METAL_HTTP_TIMEOUT", 15.0),
            poll_max_attempts=_int_env("METAL_POLL_MAX_ATTEMPTS", 60),
            poll_interval_sec=_float_env("METAL_POLL_INTERVAL_SEC", 1.0),
            liquidity_delay_sec=_float_env("METAL_LIQUIDITY_DELAY_SEC", 0.5),
            log_file=log_file or None,
            log_level=os.getenv("METAL_LOG_LEVEL", "INFO").upper(),
        )
        cfg._validate()
        return cfg

    def credential(self) -> Credential:
        if not self.api_key:
            raise RuntimeError("Missing METAL_API_KEY")
        return Credential(self.api_key)

    def require_merchant(self) -> str:
        if not self.merchant_address:
            raise RuntimeError("Missing METAL_MERCHANT_ADDRESS")
        return self.merchant_address

    def _validate(self) -> None:
        if self.http_timeout <= 0:
            raise ValueError("METAL_HTTP_TIMEOUT must be > 0")
        if self.poll_max_attempts <= 0:
            raise ValueError("METAL_POLL_MAX_ATTEMPTS must be > 0")
        if self.poll_interval_sec < 0:
            raise ValueError("METAL_POLL_INTERVAL_SEC must be >= 0")
        if self.liquidity_delay_sec < 0:
            raise ValueError("METAL_LIQUIDITY_DELAY_SEC must be >= 0")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"METAL_LOG_LEVEL must be one of {sorted(LOG_LEVELS)}")

    def log_summary(self, logger: Optional[logging.Logger] = None) -> None:
        """Log critical settings once so overrides are obvious. Call after build_logger."""
        logger = logger or logging.getLogger(LOGGER_NAME)
        if self.liquidity_base_url != self.base_url:
            logger.warning(json.dumps({
                "event": "liquidity_base_url_override",
                "base_url": self.base_url,
                "liquidity_base_url": self.liquidity_base_url,
            }))
        payload = {
            "event": "config_loaded",
            "base_url": self.base_url,
            "liquidity_base_url": self.liquidity_base_url,
            "poll_max_attempts": self.poll_max_attempts,
            "poll_interval_sec": self.poll_interval_sec,
            "has_api_key": bool(self.api_key),
        }
        logger.info(json.dumps(payload))
