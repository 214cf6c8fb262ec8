"""
Diagnostics sinks for controller messages.

Sinks only observe; nothing they do changes controller behavior.
"""

from __future__ import annotations

import logging
from typing import Iterable

from vending_system.core.interfaces import DiagnosticsSink
from vending_system.event_system import EventPublisher, EventType
from vending_system.loggers import logger


class LoggingDiagnostics:
    """Writes messages to the application logger."""

    def __init__(self, rejection_level: int = logging.WARNING) -> None:
        self._rejection_level = rejection_level

    def report(self, machine_id: str, message: str, accepted: bool) -> None:
        level = logging.INFO if accepted else self._rejection_level
        logger.log(level, f"[{machine_id}] {message}")


class EventDiagnostics:
    """
    Publishes messages as notifications on the event queue.

    Accepted events become ``STATE_CHANGED``, rejections
    ``TRANSITION_REJECTED``.
    """

    def __init__(self, publisher: EventPublisher) -> None:
        self._publisher = publisher

    def report(self, machine_id: str, message: str, accepted: bool) -> None:
        event_type = EventType.STATE_CHANGED if accepted else EventType.TRANSITION_REJECTED
        self._publisher.publish_nowait(event_type, machine_id=machine_id, message=message)


class CompositeDiagnostics:
    """Forwards every message to several sinks."""

    def __init__(self, sinks: Iterable[DiagnosticsSink]) -> None:
        self._sinks = list(sinks)

    def report(self, machine_id: str, message: str, accepted: bool) -> None:
        for sink in self._sinks:
            sink.report(machine_id, message, accepted)
