"""
Custom exceptions for the vending system.

Rejected transitions are not exceptions: they are reported through
``Outcome.diagnostic``. The types below cover integration and programming
errors that must fail loudly.
"""

from typing import Any, Optional


class VendingSystemError(Exception):
    """Base exception for all vending system errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            code: Optional error code for programmatic handling.
            details: Optional additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Controller Errors
# =============================================================================


class ControllerError(VendingSystemError):
    """Base exception for controller invariant violations."""

    def __init__(
        self,
        message: str,
        machine_id: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.machine_id = machine_id
        if machine_id:
            self.details["machine"] = machine_id


class SchedulerContractError(ControllerError):
    """A second completion was scheduled while one is still outstanding."""

    pass


# =============================================================================
# Application Errors
# =============================================================================


class MachineNotFoundError(VendingSystemError):
    """No controller is registered under the requested machine id."""

    def __init__(self, machine_id: str, **kwargs: Any) -> None:
        super().__init__(f"Unknown machine: {machine_id}", **kwargs)
        self.details["machine"] = machine_id

