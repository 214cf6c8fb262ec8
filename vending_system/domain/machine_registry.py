"""
Machine Registry - Independent controllers addressed by machine id.
"""

from __future__ import annotations

from typing import Optional

from vending_system.core.exceptions import MachineNotFoundError
from vending_system.domain.vending_state_machine import VendingController
from vending_system.loggers import logger


class MachineRegistry:
    """
    Registry for vending controllers.

    Each controller is an independent device; nothing is shared between them.
    """

    def __init__(self) -> None:
        """Initialize the registry."""
        self._machines: dict[str, VendingController] = {}

    def register(self, controller: VendingController) -> None:
        """
        Register a controller under its machine id.

        Args:
            controller: Controller to register.
        """
        self._machines[controller.machine_id] = controller
        logger.debug(f"Registered machine: {controller.machine_id}")

    def unregister(self, machine_id: str) -> Optional[VendingController]:
        """
        Unregister a controller.

        Args:
            machine_id: Machine id.

        Returns:
            The unregistered controller, or None if not found.
        """
        return self._machines.pop(machine_id, None)

    def get(self, machine_id: str) -> Optional[VendingController]:
        """Get a controller by machine id."""
        return self._machines.get(machine_id)

    def require(self, machine_id: str) -> VendingController:
        """
        Get a controller by machine id.

        Raises:
            MachineNotFoundError: If no controller is registered.
        """
        controller = self._machines.get(machine_id)
        if controller is None:
            raise MachineNotFoundError(machine_id)
        return controller

    def get_all(self) -> list[VendingController]:
        """Get all registered controllers."""
        return list(self._machines.values())

    def get_names(self) -> set[str]:
        """Get set of all machine ids."""
        return set(self._machines.keys())

    def __contains__(self, machine_id: str) -> bool:
        return machine_id in self._machines

    def __len__(self) -> int:
        return len(self._machines)
