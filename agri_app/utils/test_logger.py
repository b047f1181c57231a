"""
log_function / LogOperation tracing
"""
import asyncio
import logging

import pytest

from agri_app.utils.logger import LogOperation, _safe_repr, log_function


@log_function
def double(x):
    return x * 2


@log_function
async def fail_later():
    await asyncio.sleep(0)
    raise ValueError("bad row")


def test_log_function_keeps_sync_behaviour():
    assert double(21) == 42
    assert double.__name__ == "double"


def test_log_function_reraises_async_errors(caplog):
    with caplog.at_level(logging.ERROR):
        with pytest.raises(ValueError):
            asyncio.run(fail_later())
    assert "ASYNC ERROR in" in caplog.text
    assert "bad row" in caplog.text


def test_log_operation_reports_failure(caplog):
    log = logging.getLogger("agri_app.test")
    with caplog.at_level(logging.INFO, logger="agri_app.test"):
        with pytest.raises(RuntimeError):
            with LogOperation("resync", log):
                raise RuntimeError("offline")
    assert "START OPERATION: resync" in caplog.text
    assert "FAILED" in caplog.text


def test_safe_repr_truncates_and_survives_broken_repr():
    class Broken:
        def __repr__(self):
            raise RuntimeError

    assert _safe_repr("x" * 500).endswith("...")
    assert _safe_repr(Broken()) == "<Broken object>"
