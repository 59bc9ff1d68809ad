"""
metal_batch: single-flight batch orchestration of Metal token jobs.
"""

__version__ = "0.1.0"
