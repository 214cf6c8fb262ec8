"""
Interfaces (Protocols) for the vending system.

Defines contracts for the collaborators a controller depends on, using
Python's Protocol for structural subtyping (duck typing with type hints).
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable


# =============================================================================
# Timing
# =============================================================================


@runtime_checkable
class CompletionScheduler(Protocol):
    """Deferred-callback capability consumed by the controller."""

    def schedule(self, delay: float, callback: Callable[[], Any]) -> Any:
        """
        Run ``callback`` once after ``delay`` seconds.

        Args:
            delay: Delay in seconds.
            callback: Zero-argument callable.

        Returns:
            Opaque handle accepted by ``cancel``.
        """
        ...

    def cancel(self, handle: Any) -> None:
        """
        Cancel a pending callback.

        Args:
            handle: Handle returned by ``schedule``.
        """
        ...


# =============================================================================
# Diagnostics
# =============================================================================


@runtime_checkable
class DiagnosticsSink(Protocol):
    """Receives human-readable messages; has no effect on control flow."""

    def report(self, machine_id: str, message: str, accepted: bool) -> None:
        """
        Record a message about a processed event.

        Args:
            machine_id: Controller that produced the message.
            message: Human-readable message.
            accepted: Whether the event was accepted.
        """
        ...
