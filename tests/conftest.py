"""Shared test fixtures."""

from pathlib import Path

import pytest

from hrbot.employees import EmployeeDirectory
from hrbot.memory.store import ConversationStore

DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "employee_data.csv"


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> ConversationStore:
    """Store with default-sized windows driven by the fake clock."""
    return ConversationStore(
        max_messages=10,
        session_timeout=30 * 60,
        sweep_interval=5 * 60,
        context_staleness=5 * 60,
        clock=clock,
    )


@pytest.fixture
def directory() -> EmployeeDirectory:
    """Employee directory loaded from the bundled sample CSV."""
    return EmployeeDirectory.from_csv(DATA_PATH)
