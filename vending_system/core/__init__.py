"""
Core module - Foundation layer with no external dependencies.

Contains:
- Exceptions
- Interfaces (Protocols)
- Value Objects (states, events, outcomes)
"""

from .exceptions import (
    VendingSystemError,
    ControllerError,
    SchedulerContractError,
    MachineNotFoundError,
)
from .interfaces import (
    CompletionScheduler,
    DiagnosticsSink,
)
from .value_objects import (
    State,
    Idle,
    ItemSelected,
    HasFunds,
    Dispensing,
    Event,
    SelectItem,
    InsertPayment,
    RequestDispense,
    DispenseComplete,
    Reset,
    Outcome,
)


__all__ = [
    # Exceptions
    "VendingSystemError",
    "ControllerError",
    "SchedulerContractError",
    "MachineNotFoundError",
    # Interfaces
    "CompletionScheduler",
    "DiagnosticsSink",
    # States
    "State",
    "Idle",
    "ItemSelected",
    "HasFunds",
    "Dispensing",
    # Events
    "Event",
    "SelectItem",
    "InsertPayment",
    "RequestDispense",
    "DispenseComplete",
    "Reset",
    # Results
    "Outcome",
]
