import logging
import time
from typing import Any, Callable, Dict

import pytest
from loguru import logger


@pytest.fixture
def caplog(caplog):
    """Route loguru records into pytest's caplog."""
    handler_id = logger.add(caplog.handler, format="{message}", level=0)
    caplog.set_level(logging.DEBUG)
    yield caplog
    logger.remove(handler_id)


def _wait_for(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def wait_for():
    """Poll a predicate until it holds or the timeout expires."""
    return _wait_for


@pytest.fixture
def make_document(tmp_path):
    """Build a pipeline configuration document for ``tmp_path``."""

    def _make(options: Dict[str, Any] = None, **file_config) -> Dict[str, Any]:
        config = {"fileFolderPath": str(tmp_path), "fileExtension": "csv", "maxLinesInEvent": 2}
        config.update(file_config)
        return {"fileConfig": config, "options": options or {}}

    return _make
