"""
Domain layer - State machine and business rules.

Contains:
- Pure transition table
- Vending controller and transaction
- Machine registry
"""

from .transitions import (
    Effect,
    Transition,
    transition,
    validate_amount,
)
from .vending_state_machine import (
    VendingController,
    Transaction,
    TransitionRecord,
)
from .machine_registry import MachineRegistry


__all__ = [
    # Transitions
    "Effect",
    "Transition",
    "transition",
    "validate_amount",
    # Controller
    "VendingController",
    "Transaction",
    "TransitionRecord",
    # Registry
    "MachineRegistry",
]
