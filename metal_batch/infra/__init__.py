"""
Infrastructure package.

This package contains logging configuration and the JSON wire codec.
"""

from metal_batch.infra.codec import DecodeResult, decode, encode
from metal_batch.infra.logging_cfg import LOGGER_NAME, build_logger, log_event

__all__ = [
    "DecodeResult",
    "decode",
    "encode",
    "LOGGER_NAME",
    "build_logger",
    "log_event",
]
