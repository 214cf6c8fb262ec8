"""
Pytest configuration for vending system tests.

Provides a synchronous completion scheduler double and controller fixtures.
"""

from typing import Any, Callable

import pytest

from vending_system.core.value_objects import (
    InsertPayment,
    RequestDispense,
    SelectItem,
)
from vending_system.domain.vending_state_machine import VendingController


class FakeScheduler:
    """
    Completion scheduler that records calls and fires only on demand.

    Attributes:
        scheduled: (handle, delay) for every schedule() call.
        cancelled: Handles passed to cancel().
    """

    def __init__(self) -> None:
        self.scheduled: list[tuple[int, float]] = []
        self.cancelled: list[int] = []
        self._pending: dict[int, Callable[[], Any]] = {}
        self._next_handle = 0

    def schedule(self, delay: float, callback: Callable[[], Any]) -> int:
        self._next_handle += 1
        handle = self._next_handle
        self.scheduled.append((handle, delay))
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self.cancelled.append(handle)
        self._pending.pop(handle, None)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def callback_for(self, handle: int) -> Callable[[], Any]:
        return self._pending[handle]

    def fire_all(self) -> None:
        """Run every pending callback, as if its delay elapsed."""
        for handle, callback in list(self._pending.items()):
            del self._pending[handle]
            callback()


class RecordingDiagnostics:
    """Diagnostics sink that keeps every report."""

    def __init__(self) -> None:
        self.reports: list[tuple[str, str, bool]] = []

    def report(self, machine_id: str, message: str, accepted: bool) -> None:
        self.reports.append((machine_id, message, accepted))


def drive_to(controller: VendingController, state_name: str, item_code: str = "A1") -> None:
    """Feed the happy-path events needed to reach ``state_name``."""
    steps = {
        "Idle": [],
        "ItemSelected": [SelectItem(item_code)],
        "HasFunds": [SelectItem(item_code), InsertPayment(1.5)],
        "Dispensing": [SelectItem(item_code), InsertPayment(1.5), RequestDispense()],
    }
    for event in steps[state_name]:
        assert controller.handle(event).accepted
    assert controller.current_state.name == state_name


@pytest.fixture
def scheduler():
    """Create a fresh fake scheduler for each test."""
    return FakeScheduler()


@pytest.fixture
def diagnostics():
    """Create a recording diagnostics sink."""
    return RecordingDiagnostics()


@pytest.fixture
def controller(scheduler, diagnostics):
    """Create a controller wired to the fake scheduler."""
    return VendingController(
        scheduler=scheduler,
        machine_id="test_machine",
        diagnostics=diagnostics,
    )
