import os
from collections.abc import Callable
from typing import Any

import pytest

from blox.blox_parser import parse
from blox.blox_visitor import dump

# Monkeypatch coverage to bypass teardown crash in act/docker
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    # Nukes the teardown assertion that fails in act
    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop


@pytest.fixture  # type: ignore[misc]
def dumped() -> Callable[[str], str]:
    """Parses a program and returns its compact dump."""

    def _dumped(source: str) -> str:
        return dump(parse(source))

    return _dumped
