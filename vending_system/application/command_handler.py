"""
Command Handler - Routes bridge commands to service methods.

Provides command routing with argument validation and error handling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Awaitable, Optional

from vending_system.loggers import logger


# Type alias for command handlers
CommandHandlerFunc = Callable[..., Awaitable[dict[str, Any]]]


@dataclass
class CommandResponse:
    """
    Standardized response for command execution.

    Attributes:
        command_id: The ID of the executed command.
        success: Whether the command succeeded.
        message: Human-readable message.
        data: Optional response data.
    """

    command_id: Optional[int] = None
    success: bool = False
    message: Optional[str] = None
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert the response to a dictionary."""
        return {
            "command_id": self.command_id,
            "success": self.success,
            "message": self.message,
            "data": self.data,
        }


@dataclass
class CommandDefinition:
    """
    Definition of a command.

    Attributes:
        name: Command name.
        handler: Handler function.
        required_args: Argument names that must be present.
        optional_args: Argument names passed through when present.
        description: Human-readable description.
    """

    name: str
    handler: CommandHandlerFunc
    required_args: list[str]
    optional_args: list[str] = field(default_factory=list)
    description: str = ""


class CommandHandler:
    """
    Routes commands to their handlers on the vending service.
    """

    def __init__(self, service: Any) -> None:
        """
        Initialize the command handler.

        Args:
            service: The VendingService instance.
        """
        self._service = service
        self._commands: dict[str, CommandDefinition] = {}
        self._register_default_commands()

    def _register_default_commands(self) -> None:
        """Register all default command handlers."""
        # Purchase flow
        self.register(
            "select_item",
            self._service.select_item,
            ["item_code"],
            ["machine_id"],
            "Select an item by code",
        )
        self.register(
            "insert_payment",
            self._service.insert_payment,
            ["amount"],
            ["machine_id"],
            "Insert payment for the selected item",
        )
        self.register(
            "request_dispense",
            self._service.request_dispense,
            [],
            ["machine_id"],
            "Dispense the paid item",
        )
        self.register(
            "reset",
            self._service.reset,
            [],
            ["machine_id"],
            "Abort the current transaction",
        )

        # Status
        self.register(
            "get_state",
            self._service.get_state,
            [],
            ["machine_id"],
            "Get current state and transaction",
        )
        self.register(
            "get_history",
            self._service.get_history,
            [],
            ["machine_id"],
            "Get recently processed events",
        )
        self.register(
            "list_machines",
            self._service.list_machines,
            [],
            [],
            "List machines and their states",
        )

    def register(
        self,
        command_name: str,
        handler: CommandHandlerFunc,
        required_args: list[str],
        optional_args: Optional[list[str]] = None,
        description: str = "",
    ) -> None:
        """
        Register a command handler.

        Args:
            command_name: The name of the command.
            handler: The async handler function.
            required_args: List of required argument names.
            optional_args: List of optional argument names.
            description: Human-readable description.
        """
        self._commands[command_name] = CommandDefinition(
            name=command_name,
            handler=handler,
            required_args=required_args,
            optional_args=optional_args or [],
            description=description,
        )

    def get_available_commands(self) -> list[dict[str, Any]]:
        """Get list of available commands with their descriptions."""
        return [
            {
                "name": cmd.name,
                "required_args": cmd.required_args,
                "optional_args": cmd.optional_args,
                "description": cmd.description,
            }
            for cmd in self._commands.values()
        ]

    async def execute(self, command_data: dict[str, Any]) -> dict[str, Any]:
        """
        Execute a command based on command data.

        Args:
            command_data: Dictionary containing 'command', 'command_id', and 'data'.

        Returns:
            Response dictionary with execution result.
        """
        command = command_data.get("command")
        command_id = command_data.get("command_id")
        data = command_data.get("data", {}) or {}

        response = CommandResponse(command_id=command_id)

        if not isinstance(command, str):
            logger.warning(f"Invalid command: {command!r}")
            response.message = f"Invalid command: {command!r}"
            return response.to_dict()

        if not isinstance(data, dict):
            logger.warning(f"Invalid data for command '{command}': {data!r}")
            response.message = "Command data must be an object"
            return response.to_dict()

        if command not in self._commands:
            logger.warning(f"Unknown command: {command}")
            response.message = f"Unknown command: {command}"
            return response.to_dict()

        definition = self._commands[command]

        missing = [arg for arg in definition.required_args if data.get(arg) is None]
        if missing:
            response.message = f"Missing required arguments: {missing}"
            return response.to_dict()

        kwargs = {arg: data[arg] for arg in definition.required_args}
        kwargs.update(
            {arg: data[arg] for arg in definition.optional_args if data.get(arg) is not None}
        )

        try:
            result = await definition.handler(**kwargs)
        except Exception as e:
            logger.error(f"Error executing command '{command}': {e}")
            response.message = f"Error: {e}"
            return response.to_dict()

        if isinstance(result, dict):
            response.success = result.get("success", False)
            response.message = result.get("message")
            response.data = result.get("data")
        else:
            response.success = True
            response.data = result

        return response.to_dict()
