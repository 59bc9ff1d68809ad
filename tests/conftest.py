"""
Pytest configuration and fixtures.
Adds the repo root to sys.path so tests can import metal_batch without installing it.
"""

import logging
import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from metal_batch.api.models import Credential  # noqa: E402
from metal_batch.infra.logging_cfg import LOGGER_NAME  # noqa: E402


@pytest.fixture
def credential():
    return Credential("test-key-123")


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every METAL_* variable so settings come from defaults."""
    import os

    for key in list(os.environ):
        if key.startswith("METAL_"):
            monkeypatch.delenv(key, raising=False)
    yield monkeypatch
    # values loaded from dotenv files bypass monkeypatch
    for key in list(os.environ):
        if key.startswith("METAL_"):
            os.environ.pop(key, None)


@pytest.fixture
def restore_logger():
    """Undo handler changes made by build_logger on the package logger."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers = list(logger.handlers)
    propagate = logger.propagate
    level = logger.level
    yield logger
    for h in list(logger.handlers):
        if h not in handlers:
            logger.removeHandler(h)
            h.close()
    logger.propagate = propagate
    logger.setLevel(level)
