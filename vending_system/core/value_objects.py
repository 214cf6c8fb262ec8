"""
Value Objects for the vending system.

States and events are immutable tagged variants: each one is a frozen
dataclass carrying only its own payload. Value objects are compared by
value, not by identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union


# =============================================================================
# Machine States
# =============================================================================


@dataclass(frozen=True)
class Idle:
    """No item selected, no funds held."""

    @property
    def name(self) -> str:
        return "Idle"

    def to_dict(self) -> dict[str, Any]:
        return {"state": self.name}

    def __str__(self) -> str:
        return "Idle{}"


@dataclass(frozen=True)
class ItemSelected:
    """Item chosen, awaiting payment."""

    item_code: str

    @property
    def name(self) -> str:
        return "ItemSelected"

    def to_dict(self) -> dict[str, Any]:
        return {"state": self.name, "item_code": self.item_code}

    def __str__(self) -> str:
        return f"ItemSelected{{{self.item_code}}}"


@dataclass(frozen=True)
class HasFunds:
    """Payment received, ready to dispense."""

    item_code: str
    amount: float

    @property
    def name(self) -> str:
        return "HasFunds"

    def to_dict(self) -> dict[str, Any]:
        return {"state": self.name, "item_code": self.item_code, "amount": self.amount}

    def __str__(self) -> str:
        return f"HasFunds{{{self.item_code},{self.amount}}}"


@dataclass(frozen=True)
class Dispensing:
    """Dispense in progress; only completion or reset are accepted."""

    item_code: str

    @property
    def name(self) -> str:
        return "Dispensing"

    def to_dict(self) -> dict[str, Any]:
        return {"state": self.name, "item_code": self.item_code}

    def __str__(self) -> str:
        return f"Dispensing{{{self.item_code}}}"


State = Union[Idle, ItemSelected, HasFunds, Dispensing]

ALL_STATE_TYPES: tuple[type, ...] = (Idle, ItemSelected, HasFunds, Dispensing)


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class SelectItem:
    """Customer picked an item by its code."""

    code: str

    @property
    def name(self) -> str:
        return "SelectItem"


@dataclass(frozen=True)
class InsertPayment:
    """Customer inserted money."""

    amount: float

    @property
    def name(self) -> str:
        return "InsertPayment"


@dataclass(frozen=True)
class RequestDispense:
    """Customer asked for the paid item."""

    @property
    def name(self) -> str:
        return "RequestDispense"


@dataclass(frozen=True)
class DispenseComplete:
    """Delivered by the completion scheduler once the item is out."""

    @property
    def name(self) -> str:
        return "DispenseComplete"


@dataclass(frozen=True)
class Reset:
    """Abort whatever is in progress and return to Idle."""

    @property
    def name(self) -> str:
        return "Reset"


Event = Union[SelectItem, InsertPayment, RequestDispense, DispenseComplete, Reset]

ALL_EVENT_TYPES: tuple[type, ...] = (
    SelectItem,
    InsertPayment,
    RequestDispense,
    DispenseComplete,
    Reset,
)


def event_name(event: Any) -> str:
    """Get a printable name for any event, including unknown kinds."""
    return getattr(event, "name", type(event).__name__)


# =============================================================================
# Outcome
# =============================================================================


@dataclass(frozen=True)
class Outcome:
    """
    Result of processing one event.

    Attributes:
        accepted: Whether the current state accepted the event.
        state: State after processing (unchanged on rejection).
        diagnostic: Reason for a rejection, None when accepted.
    """

    accepted: bool
    state: State
    diagnostic: Optional[str] = None

    @classmethod
    def accept(cls, state: State) -> "Outcome":
        """Create an accepted outcome."""
        return cls(accepted=True, state=state)

    @classmethod
    def reject(cls, state: State, diagnostic: str) -> "Outcome":
        """Create a rejected outcome."""
        return cls(accepted=False, state=state, diagnostic=diagnostic)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        result = {
            "accepted": self.accepted,
            **self.state.to_dict(),
        }
        if self.diagnostic:
            result["diagnostic"] = self.diagnostic
        return result
