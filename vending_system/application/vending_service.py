"""
Vending Service - Application service for vending operations.

Translates caller requests into controller events for the addressed
machine and shapes outcomes into response dictionaries.
"""

from __future__ import annotations

from typing import Any, Optional

from vending_system.core.exceptions import MachineNotFoundError
from vending_system.core.interfaces import CompletionScheduler, DiagnosticsSink
from vending_system.core.value_objects import (
    Event,
    InsertPayment,
    RequestDispense,
    Reset,
    SelectItem,
)
from vending_system.domain.machine_registry import MachineRegistry
from vending_system.domain.vending_state_machine import VendingController
from vending_system.event_system import EventPublisher
from vending_system.infrastructure.diagnostics import (
    CompositeDiagnostics,
    EventDiagnostics,
    LoggingDiagnostics,
)
from vending_system.infrastructure.settings import Settings, get_settings
from vending_system.loggers import logger


class VendingService:
    """
    Application service for vending operations.

    Owns one independent controller per configured machine id. All
    controllers share the scheduler and the diagnostics sinks.
    """

    def __init__(
        self,
        scheduler: CompletionScheduler,
        event_publisher: Optional[EventPublisher] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """
        Initialize the vending service.

        Args:
            scheduler: Completion scheduler shared by all controllers.
            event_publisher: Optional publisher for state notifications.
            settings: Settings to use instead of the global ones.
        """
        self._settings = settings or get_settings()
        self._scheduler = scheduler
        self._registry = MachineRegistry()

        sinks: list[DiagnosticsSink] = [LoggingDiagnostics()]
        if event_publisher is not None:
            sinks.append(EventDiagnostics(event_publisher))
        self._diagnostics = CompositeDiagnostics(sinks)

        for machine_id in self._settings.vending.machine_ids:
            self.add_machine(machine_id)

    @property
    def registry(self) -> MachineRegistry:
        """Get the machine registry."""
        return self._registry

    @property
    def default_machine_id(self) -> str:
        """Get the machine addressed when a request names none."""
        return self._settings.vending.machine_ids[0]

    def add_machine(self, machine_id: str) -> VendingController:
        """
        Create and register a controller.

        Args:
            machine_id: Id of the new machine.

        Returns:
            The new controller.
        """
        controller = VendingController(
            scheduler=self._scheduler,
            machine_id=machine_id,
            diagnostics=self._diagnostics,
            dispense_delay=self._settings.vending.dispense_delay,
            history_size=self._settings.vending.history_size,
        )
        self._registry.register(controller)
        return controller

    # =========================================================================
    # Operations
    # =========================================================================

    async def select_item(self, item_code: Any, machine_id: Optional[str] = None) -> dict[str, Any]:
        """Select an item on a machine."""
        return self._dispatch(machine_id, SelectItem(code=item_code))

    async def insert_payment(self, amount: Any, machine_id: Optional[str] = None) -> dict[str, Any]:
        """Insert payment for the selected item."""
        return self._dispatch(machine_id, InsertPayment(amount=amount))

    async def request_dispense(self, machine_id: Optional[str] = None) -> dict[str, Any]:
        """Dispense the paid item."""
        return self._dispatch(machine_id, RequestDispense())

    async def reset(self, machine_id: Optional[str] = None) -> dict[str, Any]:
        """Abort the current transaction."""
        return self._dispatch(machine_id, Reset())

    async def get_state(self, machine_id: Optional[str] = None) -> dict[str, Any]:
        """
        Get the current state and transaction of a machine.

        Returns:
            Dictionary with success status and state data.
        """
        try:
            controller = self._registry.require(machine_id or self.default_machine_id)
        except MachineNotFoundError as e:
            return self._error(e)

        state = controller.current_state
        return {
            "success": True,
            "message": str(state),
            "data": {
                "machine_id": controller.machine_id,
                **state.to_dict(),
                "transaction": controller.transaction.to_dict(),
                "dispense_pending": controller.has_pending_completion,
            },
        }

    async def get_history(self, machine_id: Optional[str] = None) -> dict[str, Any]:
        """Get recently processed events of a machine."""
        try:
            controller = self._registry.require(machine_id or self.default_machine_id)
        except MachineNotFoundError as e:
            return self._error(e)

        return {
            "success": True,
            "message": f"{len(controller.history)} records",
            "data": [record.to_dict() for record in controller.history],
        }

    async def list_machines(self) -> dict[str, Any]:
        """List registered machines with their states."""
        return {
            "success": True,
            "message": f"{len(self._registry)} machines",
            "data": {
                controller.machine_id: str(controller.current_state)
                for controller in self._registry.get_all()
            },
        }

    def _dispatch(self, machine_id: Optional[str], event: Event) -> dict[str, Any]:
        try:
            controller = self._registry.require(machine_id or self.default_machine_id)
        except MachineNotFoundError as e:
            return self._error(e)

        outcome = controller.handle(event)
        return {
            "success": outcome.accepted,
            "message": outcome.diagnostic or str(outcome.state),
            "data": {"machine_id": controller.machine_id, **outcome.to_dict()},
        }

    @staticmethod
    def _error(error: MachineNotFoundError) -> dict[str, Any]:
        logger.warning(error.message)
        return {"success": False, "message": error.message, "data": error.to_dict()}
