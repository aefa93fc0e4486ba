from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest

from todoapi.observability import reset_logger, reset_metrics


@pytest.fixture(autouse=True)
def _json_logs_on_current_stdout(
    monkeypatch: pytest.MonkeyPatch, capsys: Any
) -> Generator[None, None, None]:
    """Rebind service loggers to this test's captured stdout as JSON.

    Handlers capture sys.stdout when created, so a logger initialised in an
    earlier test would otherwise write to a stale stream.
    """
    monkeypatch.setenv("LOG_FORMAT", "json")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_MODULE_LEVELS", raising=False)
    reset_metrics()
    reset_logger("todoapi.gateway")
    yield
    reset_metrics()


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_call(item: pytest.Item) -> None:
    # capsys swaps in a fresh stream for the call phase, so the rebinding
    # done during fixture setup would point at an already-closed stream.
    reset_logger("todoapi.gateway")
