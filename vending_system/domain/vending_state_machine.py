"""
Vending State Machine - Owns the current state and the transaction.

Routes every event through the pure transition table, commits the result
and runs the side effects (completion scheduling, diagnostics) itself.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, replace
from functools import partial
from typing import Any, Deque, Optional

from vending_system.core.exceptions import SchedulerContractError
from vending_system.core.interfaces import CompletionScheduler, DiagnosticsSink
from vending_system.core.value_objects import (
    DispenseComplete,
    Dispensing,
    Event,
    HasFunds,
    Idle,
    ItemSelected,
    Outcome,
    Reset,
    State,
    event_name,
)
from vending_system.domain.transitions import (
    AmountValidator,
    Effect,
    transition,
    validate_amount,
)
from vending_system.loggers import logger


DEFAULT_DISPENSE_DELAY = 1.0


# =============================================================================
# Transaction
# =============================================================================


@dataclass
class Transaction:
    """
    In-progress purchase.

    Owned by the controller; states never hold a reference to it.
    """

    item_code: Optional[str] = None
    amount: float = 0.0

    @property
    def is_empty(self) -> bool:
        """Check if nothing has been selected or paid."""
        return self.item_code is None and self.amount == 0.0

    def reset(self) -> None:
        """Reset the transaction."""
        self.item_code = None
        self.amount = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"item_code": self.item_code, "amount": self.amount}


@dataclass(frozen=True)
class TransitionRecord:
    """
    A single processed event captured in the history ring buffer.

    Attributes:
        timestamp: Unix timestamp when the event was processed.
        from_state: State before handling the event.
        event: Name of the event.
        to_state: State after handling the event.
        accepted: Whether the event was accepted.
    """

    timestamp: float
    from_state: State
    event: str
    to_state: State
    accepted: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "from": str(self.from_state),
            "event": self.event,
            "to": str(self.to_state),
            "accepted": self.accepted,
        }


# =============================================================================
# Vending Controller
# =============================================================================


class VendingController:
    """
    Finite-state controller for one dispensing device.

    ``handle`` is synchronous and runs to completion; callers that receive
    events from several threads must serialize their calls. Rejected events
    are reported through the returned ``Outcome``, never raised.
    """

    # Maximum processed events kept in history
    HISTORY_SIZE = 10

    def __init__(
        self,
        scheduler: CompletionScheduler,
        machine_id: str = "default",
        diagnostics: Optional[DiagnosticsSink] = None,
        dispense_delay: float = DEFAULT_DISPENSE_DELAY,
        amount_validator: AmountValidator = validate_amount,
        history_size: int = HISTORY_SIZE,
    ) -> None:
        """
        Initialize the controller in Idle.

        Args:
            scheduler: Delivers DispenseComplete after the dispense delay.
            machine_id: Name of the device this controller drives.
            diagnostics: Optional sink for success and rejection messages.
            dispense_delay: Seconds between dispense start and completion.
            amount_validator: Payment check returning a reason or None.
            history_size: Number of processed events kept for tracing.
        """
        self._machine_id = machine_id
        self._scheduler = scheduler
        self._diagnostics = diagnostics
        self._dispense_delay = dispense_delay
        self._amount_validator = amount_validator

        self._state: State = Idle()
        self._transaction = Transaction()
        self._history: Deque[TransitionRecord] = deque(maxlen=history_size)

        # Single-flight completion tracking
        self._pending_completion: Any = None
        self._pending_episode: Optional[int] = None
        self._episode = 0

    @property
    def machine_id(self) -> str:
        """Get the machine id."""
        return self._machine_id

    @property
    def current_state(self) -> State:
        """Get the current state (immutable snapshot)."""
        return self._state

    @property
    def transaction(self) -> Transaction:
        """Get a copy of the current transaction."""
        return replace(self._transaction)

    @property
    def history(self) -> list[TransitionRecord]:
        """Get recently processed events, oldest first."""
        return list(self._history)

    @property
    def has_pending_completion(self) -> bool:
        """Check if a completion callback is outstanding."""
        return self._pending_episode is not None

    # =========================================================================
    # Event Handling
    # =========================================================================

    def handle(self, event: Event) -> Outcome:
        """
        Process one event.

        Args:
            event: Incoming event.

        Returns:
            Outcome with acceptance flag, resulting state and diagnostic.

        Raises:
            SchedulerContractError: If a completion would be scheduled while
                another one is outstanding.
        """
        previous = self._state
        result = transition(previous, event, self._amount_validator)

        if not result.accepted:
            logger.debug(f"[{self._machine_id}] {event_name(event)} rejected, staying in {previous}")
            self._record(previous, event, previous, accepted=False)
            self._report(result.message, accepted=False)
            return Outcome.reject(self._state, result.message)

        self._commit(result.next_state)
        logger.debug(f"[{self._machine_id}] {previous} -> {result.next_state}")

        # Recorded before effects run: a completion may fire inside schedule().
        self._record(previous, event, result.next_state, accepted=True)
        self._report(result.message, accepted=True)

        for effect in result.effects:
            self._apply(effect)
        return Outcome.accept(self._state)

    def reset(self) -> Outcome:
        """Return to Idle from any state."""
        return self.handle(Reset())

    def _commit(self, state: State) -> None:
        """Replace the state and keep the transaction in step with it."""
        self._state = state

        if isinstance(state, Idle):
            self._transaction.reset()
        elif isinstance(state, ItemSelected):
            self._transaction.item_code = state.item_code
            self._transaction.amount = 0.0
        elif isinstance(state, HasFunds):
            self._transaction.item_code = state.item_code
            self._transaction.amount = state.amount
        elif isinstance(state, Dispensing):
            self._transaction.item_code = state.item_code

    def _apply(self, effect: Effect) -> None:
        if effect is Effect.SCHEDULE_COMPLETION:
            self._schedule_completion()
        elif effect is Effect.CANCEL_COMPLETION:
            self._cancel_completion()

    def _record(self, previous: State, event: Event, state: State, accepted: bool) -> None:
        self._history.append(
            TransitionRecord(
                timestamp=time.time(),
                from_state=previous,
                event=event_name(event),
                to_state=state,
                accepted=accepted,
            )
        )

    def _report(self, message: str, accepted: bool) -> None:
        if self._diagnostics is None:
            return
        try:
            self._diagnostics.report(self._machine_id, message, accepted)
        except Exception as e:
            logger.error(f"Diagnostics sink error: {e}")

    # =========================================================================
    # Completion Scheduling
    # =========================================================================

    def _schedule_completion(self) -> None:
        if self._pending_episode is not None:
            raise SchedulerContractError(
                "Completion already scheduled for this controller",
                machine_id=self._machine_id,
                details={"state": str(self._state)},
            )

        self._episode += 1
        episode = self._episode
        self._pending_episode = episode

        try:
            handle = self._scheduler.schedule(
                self._dispense_delay,
                partial(self._on_completion_due, episode),
            )
        except Exception:
            if self._pending_episode == episode:
                self._pending_episode = None
                self._pending_completion = None
            logger.error(f"[{self._machine_id}] Failed to schedule completion (episode {episode})")
            raise

        # A scheduler may fire before returning; the episode is then resolved.
        if self._pending_episode == episode:
            self._pending_completion = handle

        logger.debug(
            f"[{self._machine_id}] Completion scheduled in {self._dispense_delay}s "
            f"(episode {episode})"
        )

    def _cancel_completion(self) -> None:
        if self._pending_episode is None:
            return

        handle = self._pending_completion
        self._pending_completion = None
        self._pending_episode = None
        # No handle yet while schedule() is still running.
        if handle is not None:
            self._scheduler.cancel(handle)
        logger.debug(f"[{self._machine_id}] Pending completion cancelled")

    def _on_completion_due(self, episode: int) -> None:
        """Scheduler callback: deliver DispenseComplete for ``episode``."""
        if episode != self._pending_episode:
            logger.warning(f"[{self._machine_id}] Ignoring stale completion (episode {episode})")
            return

        self._pending_completion = None
        self._pending_episode = None
        self.handle(DispenseComplete())
