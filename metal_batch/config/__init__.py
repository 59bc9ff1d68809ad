"""
Configuration package.
"""

from metal_batch.config.config import Settings

__all__ = ["Settings"]
