"""
Application layer - Application services and use cases.

Contains:
- Vending service
- Command handlers
"""

from .vending_service import VendingService
from .command_handler import CommandHandler, CommandResponse


__all__ = [
    "VendingService",
    "CommandHandler",
    "CommandResponse",
]
