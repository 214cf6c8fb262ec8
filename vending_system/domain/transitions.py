"""
Transition table for the vending controller.

A pure function ``transition(state, event)`` maps the current state and an
incoming event to the next state, the side effects the controller must run
and a human-readable message. Nothing here touches a scheduler, a logger or
the transaction.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Optional

from vending_system.core.value_objects import (
    Dispensing,
    DispenseComplete,
    Event,
    HasFunds,
    Idle,
    InsertPayment,
    ItemSelected,
    RequestDispense,
    Reset,
    SelectItem,
    State,
    event_name,
)


# =============================================================================
# Effects
# =============================================================================


class Effect(Enum):
    """Side effects requested by a transition, executed by the controller."""

    SCHEDULE_COMPLETION = auto()
    CANCEL_COMPLETION = auto()


@dataclass(frozen=True)
class Transition:
    """
    Result of the transition function.

    Attributes:
        accepted: Whether a rule accepted the event.
        next_state: State to commit (the current one on rejection).
        effects: Side effects to run after committing.
        message: Success message or rejection diagnostic.
    """

    accepted: bool
    next_state: State
    effects: tuple[Effect, ...] = ()
    message: str = ""


AmountValidator = Callable[[Any], Optional[str]]
Rule = Callable[[State, Any, AmountValidator], Transition]


# =============================================================================
# Payload Validation
# =============================================================================


def validate_amount(amount: Any) -> Optional[str]:
    """
    Check a payment amount.

    Returns:
        None when valid, otherwise the rejection reason.
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return f"invalid payment amount: {amount!r}"
    if not math.isfinite(amount) or amount <= 0:
        return f"payment amount must be positive: {amount!r}"
    return None


def validate_item_code(code: Any) -> Optional[str]:
    """Check an item code is a non-empty string."""
    if not isinstance(code, str) or not code.strip():
        return f"invalid item code: {code!r}"
    return None


def _rejected(state: State, event: Any, reason: str) -> Transition:
    return Transition(
        accepted=False,
        next_state=state,
        message=f"{event_name(event)} rejected in {state.name}: {reason}",
    )


# =============================================================================
# Rules
# =============================================================================


def _select_item(state: Idle, event: SelectItem, _: AmountValidator) -> Transition:
    error = validate_item_code(event.code)
    if error:
        return _rejected(state, event, error)
    return Transition(
        accepted=True,
        next_state=ItemSelected(item_code=event.code),
        message=f"Item selected: {event.code}",
    )


def _insert_payment(
    state: ItemSelected,
    event: InsertPayment,
    amount_validator: AmountValidator,
) -> Transition:
    error = amount_validator(event.amount)
    if error:
        return _rejected(state, event, error)
    return Transition(
        accepted=True,
        next_state=HasFunds(item_code=state.item_code, amount=event.amount),
        message=f"Inserted {event.amount:.2f} for item: {state.item_code}",
    )


def _request_dispense(state: HasFunds, event: RequestDispense, _: AmountValidator) -> Transition:
    return Transition(
        accepted=True,
        next_state=Dispensing(item_code=state.item_code),
        effects=(Effect.SCHEDULE_COMPLETION,),
        message=f"Dispensing item: {state.item_code}",
    )


def _dispense_complete(state: Dispensing, event: DispenseComplete, _: AmountValidator) -> Transition:
    return Transition(
        accepted=True,
        next_state=Idle(),
        effects=(Effect.CANCEL_COMPLETION,),
        message=f"Item {state.item_code} dispensed successfully",
    )


def _reset(state: State, event: Reset, _: AmountValidator) -> Transition:
    return Transition(
        accepted=True,
        next_state=Idle(),
        effects=(Effect.CANCEL_COMPLETION,),
        message=f"Machine reset from {state.name}",
    )


TRANSITIONS: dict[tuple[type, type], Rule] = {
    (Idle, SelectItem): _select_item,
    (Idle, Reset): _reset,
    (ItemSelected, InsertPayment): _insert_payment,
    (ItemSelected, Reset): _reset,
    (HasFunds, RequestDispense): _request_dispense,
    (HasFunds, Reset): _reset,
    (Dispensing, DispenseComplete): _dispense_complete,
    (Dispensing, Reset): _reset,
}

# Reasons are formatted with the current state as ``state``.
REJECTION_REASONS: dict[tuple[type, type], str] = {
    (Idle, InsertPayment): "no item selected",
    (Idle, RequestDispense): "no item selected, nothing to dispense",
    (Idle, DispenseComplete): "no dispense in progress",
    (ItemSelected, SelectItem): "item already selected: {state.item_code}",
    (ItemSelected, RequestDispense): "insert payment before dispensing",
    (ItemSelected, DispenseComplete): "no dispense in progress",
    (HasFunds, SelectItem): "cannot change item after payment",
    (HasFunds, InsertPayment): "payment already inserted",
    (HasFunds, DispenseComplete): "no dispense in progress",
    (Dispensing, SelectItem): "dispensing in progress, please wait",
    (Dispensing, InsertPayment): "dispensing in progress, please wait",
    (Dispensing, RequestDispense): "already dispensing, please wait",
}

UNKNOWN_TRANSITION_REASON = "no transition defined"


def transition(
    state: State,
    event: Event,
    amount_validator: AmountValidator = validate_amount,
) -> Transition:
    """
    Compute the next state for ``event`` received in ``state``.

    Args:
        state: Current state.
        event: Incoming event; unknown kinds are rejected.
        amount_validator: Payment check returning a reason or None.

    Returns:
        Transition describing acceptance, next state and effects.
    """
    key = (type(state), type(event))
    rule = TRANSITIONS.get(key)
    if rule is not None:
        return rule(state, event, amount_validator)

    reason = REJECTION_REASONS.get(key, UNKNOWN_TRANSITION_REASON)
    return _rejected(state, event, reason.format(state=state))
