"""Shared test fixtures for repostate tests."""

import logging
from dataclasses import dataclass
from pathlib import Path

import pytest
import structlog
from structlog.testing import CapturingLogger
from structlog.typing import FilteringBoundLogger

from repostate.config import Settings


@dataclass(frozen=True, slots=True)
class CapturedLogs:
    """A logger that records every call, and accessors for the records."""

    sink: CapturingLogger
    logger: FilteringBoundLogger

    def events(self, level: str | None = None) -> list[str]:
        """Event names logged, optionally only at one level."""
        return [
            call.kwargs["event"]
            for call in self.sink.calls
            if level is None or call.method_name == level
        ]

    def find(self, event: str) -> dict[str, object]:
        """Key/value pairs of the first call with the given event name."""
        for call in self.sink.calls:
            if call.kwargs.get("event") == event:
                return dict(call.kwargs)
        msg = f"No log call with event {event!r}"
        raise AssertionError(msg)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def captured_logs() -> CapturedLogs:
    """Logger whose calls are captured instead of rendered."""
    sink = CapturingLogger()
    logger = structlog.wrap_logger(
        sink,
        processors=[],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
    )
    return CapturedLogs(sink=sink, logger=logger)


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Root directory for working copies."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def settings(work_dir: Path) -> Settings:
    """Settings that clone fresh working copies under work_dir."""
    return Settings.from_dict(
        {"storage": {"tmp_dir": str(work_dir), "ephemeral": True}}
    )
